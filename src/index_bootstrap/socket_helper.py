"""Socket path management for the index service.

One service instance serves every project on the host, so the socket lives at
a fixed per-user location instead of inside a project directory.
"""

import os
import socket
from pathlib import Path
from typing import Optional

SOCKET_FILE_NAME = "index-service.sock"


def get_socket_directory() -> Path:
    """Get base directory for the service socket.

    Returns:
        ``$XDG_RUNTIME_DIR/index-bootstrap`` when available, else a per-user
        directory under /tmp
    """
    runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
    if runtime_dir:
        return Path(runtime_dir) / "index-bootstrap"
    return Path("/tmp") / f"index-bootstrap-{os.getuid()}"


def ensure_socket_directory(socket_dir: Path) -> None:
    """Create socket directory with user-only permissions."""
    socket_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    try:
        socket_dir.chmod(0o700)
    except PermissionError:
        # Not our directory; connecting may still work
        pass


def get_socket_path(override: Optional[Path] = None) -> Path:
    """Resolve the service socket path.

    Args:
        override: Explicit socket path from configuration

    Returns:
        Path to socket file
    """
    if override is not None:
        return override
    socket_dir = get_socket_directory()
    ensure_socket_directory(socket_dir)
    return socket_dir / SOCKET_FILE_NAME


def is_socket_alive(socket_path: Path, timeout: float = 0.1) -> bool:
    """Check whether something accepts connections on ``socket_path``."""
    if not socket_path.exists():
        return False
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(str(socket_path))
        return True
    except (ConnectionRefusedError, FileNotFoundError, OSError):
        return False
    finally:
        sock.close()


def cleanup_stale_socket(socket_path: Path) -> None:
    """Remove stale socket file.

    Args:
        socket_path: Path to socket file to remove
    """
    try:
        socket_path.unlink()
    except (FileNotFoundError, OSError):
        # Socket might not exist or already removed
        pass
