"""Staleness detection for a registered project's index."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .vcs import get_current_fingerprint

logger = logging.getLogger(__name__)

DEFAULT_MIN_INDEX_SIZE = 50000

FingerprintProvider = Callable[[Path], Optional[str]]


def is_index_valid(index_path: Path, min_size: int = DEFAULT_MIN_INDEX_SIZE) -> bool:
    """Heuristic check that an index was fully written.

    An index counts as valid only if it is a regular file strictly larger than
    ``min_size`` bytes. Content is never inspected.
    """
    try:
        if not index_path.is_file():
            return False
        return index_path.stat().st_size > min_size
    except OSError as e:
        logger.debug(f"Cannot stat index {index_path}: {e}")
        return False


def fingerprint_changed(current: Optional[str], stored: Optional[str]) -> bool:
    """True when a fingerprint is available now and differs from the stored one."""
    return current is not None and current != stored


@dataclass(frozen=True)
class StalenessReport:
    """Signals the decision table needs for a registered project."""

    index_valid: bool
    current_fingerprint: Optional[str]
    stored_fingerprint: Optional[str]

    @property
    def fingerprint_changed(self) -> bool:
        return fingerprint_changed(self.current_fingerprint, self.stored_fingerprint)


class StalenessDetector:
    """Combines the index presence check with the VCS fingerprint comparison."""

    def __init__(
        self,
        min_index_size: int = DEFAULT_MIN_INDEX_SIZE,
        fingerprint_provider: FingerprintProvider = get_current_fingerprint,
    ):
        self.min_index_size = min_index_size
        self.fingerprint_provider = fingerprint_provider

    def evaluate(
        self, root: Path, index_path: Path, stored_fingerprint: Optional[str]
    ) -> StalenessReport:
        return StalenessReport(
            index_valid=is_index_valid(index_path, self.min_index_size),
            current_fingerprint=self.fingerprint_provider(root),
            stored_fingerprint=stored_fingerprint,
        )
