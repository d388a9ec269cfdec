"""Service handle: make sure the background index service is running."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from .socket_helper import cleanup_stale_socket, is_socket_alive

logger = logging.getLogger(__name__)


class ServiceHandle:
    """Idempotent starter for the shared index service.

    ``ensure_started`` never waits for the service to become ready and never
    raises; readiness is the poller's concern.
    """

    def __init__(self, command: List[str], socket_path: Path):
        """
        Args:
            command: Spawn command; ``{socket}`` in any argument is replaced by
                the socket path
            socket_path: Socket the service listens on
        """
        self.command = command
        self.socket_path = socket_path
        self._process: Optional[subprocess.Popen] = None

    def _build_command(self) -> List[str]:
        return [arg.replace("{socket}", str(self.socket_path)) for arg in self.command]

    def _spawned_process_alive(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def ensure_started(self) -> None:
        """Start the service unless it is already running or starting."""
        if is_socket_alive(self.socket_path):
            logger.debug(f"Index service already listening on {self.socket_path}")
            return

        if self._spawned_process_alive():
            logger.debug("Index service process already spawned, waiting for socket")
            return

        if self.socket_path.exists():
            # Socket exists but nobody answers
            cleanup_stale_socket(self.socket_path)

        cmd = self._build_command()
        try:
            self._process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
            logger.info(f"Started index service (pid {self._process.pid})")
        except OSError as e:
            logger.warning(f"Failed to start index service with {cmd}: {e}")
