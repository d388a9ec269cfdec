"""Project discovery.

A directory is a project root when it contains a manifest file matching one of
the configured glob patterns. Discovery walks from a start directory up to the
filesystem root, and ``locate_project`` chains the working directory with the
active document's directory.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .environment import Environment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectInfo:
    """A resolved project: the manifest file and the directory holding it."""

    root: Path
    manifest_path: Path

    @classmethod
    def from_manifest(cls, manifest_path: Path) -> "ProjectInfo":
        return cls(root=manifest_path.parent, manifest_path=manifest_path)


class ProjectFinder:
    """Finds the nearest project manifest on or above a directory."""

    def __init__(self, manifest_patterns: List[str]):
        self.manifest_patterns = list(manifest_patterns)

    def _manifest_in(self, directory: Path) -> Optional[Path]:
        matches: List[Path] = []
        for pattern in self.manifest_patterns:
            try:
                matches.extend(p for p in directory.glob(pattern) if p.is_file())
            except (PermissionError, OSError):
                # Continue searching if we can't access this directory
                return None
        return min(matches) if matches else None

    def find_project(self, start_dir: Path) -> Optional[ProjectInfo]:
        """Find the project containing ``start_dir``.

        Args:
            start_dir: Directory to start searching from

        Returns:
            ProjectInfo for the closest manifest, or None if there is none
        """
        try:
            current = start_dir.resolve()
        except (OSError, RuntimeError) as e:
            logger.debug(f"Cannot resolve {start_dir}: {e}")
            return None

        for path in [current] + list(current.parents):
            manifest = self._manifest_in(path)
            if manifest is not None:
                return ProjectInfo.from_manifest(manifest)
        return None


def locate_project(environment: Environment, finder: ProjectFinder) -> Optional[ProjectInfo]:
    """Resolve the current project, first from the working directory and then
    from the active document's directory.

    Returns:
        ProjectInfo, or None when neither location is inside a project
    """
    project = finder.find_project(environment.working_directory())
    if project is not None:
        return project

    document = environment.active_document_path()
    if document is not None:
        return finder.find_project(document.parent)
    return None
