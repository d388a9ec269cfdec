"""Decision table mapping project state to the action to take."""

from enum import Enum


class Decision(Enum):
    """What the dispatcher should do for a resolved project."""

    SYNCED = "synced"
    REFRESH_ONLY = "refresh_only"
    FULL_REFRESH_AND_WATCH = "full_refresh_and_watch"
    REGISTER_THEN_FULL_REFRESH_AND_WATCH = "register_then_full_refresh_and_watch"


def decide(is_registered: bool, index_valid: bool, fingerprint_changed: bool) -> Decision:
    """Pick exactly one decision.

    Registration dominates, then index validity, then the fingerprint. Index
    validity and fingerprint are ignored for unregistered projects.
    """
    if not is_registered:
        return Decision.REGISTER_THEN_FULL_REFRESH_AND_WATCH
    if not index_valid:
        return Decision.FULL_REFRESH_AND_WATCH
    if fingerprint_changed:
        return Decision.REFRESH_ONLY
    return Decision.SYNCED
