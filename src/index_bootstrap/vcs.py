"""
Version-control fingerprint of a project.

The fingerprint is the current git commit hash. Git commands run with a
``safe.directory`` override so repositories owned by another user (sudo,
containers, shared checkouts) still report their state.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 5.0


def get_git_environment(project_dir: Path) -> Dict[str, str]:
    """
    Get environment variables for git commands to handle dubious ownership.

    Existing ``GIT_CONFIG_KEY_n``/``GIT_CONFIG_VALUE_n`` pairs from the calling
    environment are shifted up one slot so ``safe.directory`` can take slot 0.

    Args:
        project_dir: Path to the project directory

    Returns:
        Dictionary of environment variables for git commands
    """
    env = os.environ.copy()

    try:
        existing = int(os.environ.get("GIT_CONFIG_COUNT", "0"))
    except ValueError:
        existing = 0

    for idx in range(existing - 1, -1, -1):
        key = os.environ.get(f"GIT_CONFIG_KEY_{idx}")
        value = os.environ.get(f"GIT_CONFIG_VALUE_{idx}")
        if key is not None and value is not None:
            env[f"GIT_CONFIG_KEY_{idx + 1}"] = key
            env[f"GIT_CONFIG_VALUE_{idx + 1}"] = value

    env["GIT_CONFIG_KEY_0"] = "safe.directory"
    env["GIT_CONFIG_VALUE_0"] = str(project_dir)
    env["GIT_CONFIG_COUNT"] = str(existing + 1)
    return env


def run_git_command(
    cmd: List[str],
    cwd: Path,
    timeout: Optional[float] = GIT_TIMEOUT_SECONDS,
) -> subprocess.CompletedProcess:
    """Run a git command with proper environment handling for dubious ownership.

    Raises:
        subprocess.CalledProcessError: If the command exits non-zero
        subprocess.TimeoutExpired: If the command exceeds ``timeout``
        FileNotFoundError: If git is not installed
    """
    return subprocess.run(
        cmd,
        cwd=cwd,
        env=get_git_environment(cwd),
        capture_output=True,
        text=True,
        check=True,
        timeout=timeout,
    )


def get_current_fingerprint(root: Path) -> Optional[str]:
    """Current commit hash of the repository at ``root``.

    Returns:
        Commit hash, or None when ``root`` is not under git, has no commits yet,
        or git is unavailable
    """
    try:
        result = run_git_command(["git", "rev-parse", "HEAD"], cwd=root)
    except (
        subprocess.CalledProcessError,
        subprocess.TimeoutExpired,
        FileNotFoundError,
        NotADirectoryError,
        PermissionError,
    ) as e:
        logger.debug(f"No VCS fingerprint for {root}: {e}")
        return None

    fingerprint = result.stdout.strip()
    return fingerprint or None
