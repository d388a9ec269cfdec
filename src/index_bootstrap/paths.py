"""Canonical path comparison and index file locations.

Project roots reported by the index service and roots resolved on the client
side can differ in separator style, trailing separators and, on
case-insensitive filesystems, letter case. Everything that compares roots goes
through ``normalize`` so that the comparison is a plain string equality.
"""

import hashlib
import posixpath
import sys
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]

CASE_INSENSITIVE_PLATFORMS = ("win32", "darwin")


def is_case_insensitive_platform(platform: Optional[str] = None) -> bool:
    """Return True when the platform's default filesystem ignores case."""
    return (platform or sys.platform) in CASE_INSENSITIVE_PLATFORMS


def normalize(path: PathLike, case_sensitive: Optional[bool] = None) -> str:
    """Canonicalize a path for comparison.

    Purely lexical: the filesystem is never consulted, so paths that do not
    exist (e.g. roots reported by the service for deleted projects) normalize
    the same way as live ones.

    Args:
        path: Path to normalize
        case_sensitive: Preserve case when True, fold to lower case when False,
            follow the platform when None

    Returns:
        Forward-slash path without trailing separator
    """
    text = str(path).replace("\\", "/")
    if not text:
        return ""

    # posixpath.normpath keeps a leading "//"; UNC prefixes are not roots here
    leading = "/" if text.startswith("/") else ""
    text = leading + posixpath.normpath(text).lstrip("/")
    if text != "/":
        text = text.rstrip("/")

    if case_sensitive is None:
        case_sensitive = not is_case_insensitive_platform()
    if not case_sensitive:
        text = text.lower()
    return text


def paths_equal(a: PathLike, b: PathLike, case_sensitive: Optional[bool] = None) -> bool:
    """Compare two paths after normalization. No prefix or ancestor matching."""
    return normalize(a, case_sensitive) == normalize(b, case_sensitive)


def project_hash(root: PathLike, case_sensitive: Optional[bool] = None) -> str:
    """Generate deterministic 16-char hash from a normalized project root.

    Args:
        root: Project root directory

    Returns:
        16-character hexadecimal hash string
    """
    hash_obj = hashlib.sha256(normalize(root, case_sensitive).encode())
    return hash_obj.hexdigest()[:16]


def get_index_path(
    root: PathLike, index_dir: Path, case_sensitive: Optional[bool] = None
) -> Path:
    """Location of the persisted index for a project root.

    Hashed from the same normalization used for registry matching, so roots
    that compare equal share one index file.
    """
    return index_dir / f"{project_hash(root, case_sensitive)}.db"
