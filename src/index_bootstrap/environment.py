"""Host environment probe.

The host (editor, CLI, test) supplies where the user currently is. Nothing in
the bootstrap pipeline reads the process working directory directly.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

ACTIVE_DOCUMENT_ENV_VAR = "INDEX_BOOTSTRAP_ACTIVE_DOCUMENT"


class Environment(Protocol):
    """Capability interface over the host's notion of location."""

    def working_directory(self) -> Path: ...

    def active_document_path(self) -> Optional[Path]: ...


class ProcessEnvironment:
    """Environment backed by the current process.

    The active document is taken from the constructor, or from
    ``INDEX_BOOTSTRAP_ACTIVE_DOCUMENT`` so editor integrations that spawn the
    CLI can pass it without extra flags.
    """

    def __init__(self, active_document: Optional[Path] = None):
        self._active_document = active_document

    def working_directory(self) -> Path:
        return Path.cwd()

    def active_document_path(self) -> Optional[Path]:
        if self._active_document is not None:
            return self._active_document
        value = os.environ.get(ACTIVE_DOCUMENT_ENV_VAR, "").strip()
        return Path(value) if value else None


@dataclass
class FixedEnvironment:
    """Environment with fixed values, used by tests and embedding hosts."""

    cwd: Path
    active_document: Optional[Path] = None

    def working_directory(self) -> Path:
        return self.cwd

    def active_document_path(self) -> Optional[Path]:
        return self.active_document
