"""Registry query: which projects the index service already knows about."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from .paths import PathLike, normalize
from .rpc import RpcChannel
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectRecord:
    """Snapshot of one project registered with the service."""

    root: str
    vcs_fingerprint: Optional[str] = None

    @classmethod
    def from_payload(cls, entry: Any) -> Optional["ProjectRecord"]:
        """Build a record from one ``list_projects`` entry, None if unusable."""
        if not isinstance(entry, Mapping):
            return None
        root = entry.get("root")
        if not root:
            return None
        fingerprint = entry.get("vcs_fingerprint", entry.get("vcs_hash"))
        return cls(root=str(root), vcs_fingerprint=str(fingerprint) if fingerprint else None)


def find_project_record(
    records: Iterable[ProjectRecord],
    root: PathLike,
    case_sensitive: Optional[bool] = None,
) -> Optional[ProjectRecord]:
    """Return the record whose normalized root equals ``root`` normalized.

    Exact match only: a record for a parent or child directory does not count.
    """
    wanted = normalize(root, case_sensitive)
    for record in records:
        if normalize(record.root, case_sensitive) == wanted:
            return record
    return None


class RegistryQuery:
    """Fetches the registered project list with its own bounded retry budget."""

    def __init__(
        self,
        rpc: RpcChannel,
        scheduler: Scheduler,
        attempts: int = 3,
        retry_interval_ms: int = 500,
    ):
        self.rpc = rpc
        self.scheduler = scheduler
        self.attempts = attempts
        self.retry_interval_ms = retry_interval_ms

    async def fetch(self) -> Optional[List[ProjectRecord]]:
        """One ``list_projects`` request.

        Returns:
            Registered projects, or None when the request failed
        """
        response = await self.rpc.request("list_projects", {})
        if not response.ok:
            logger.debug(f"list_projects failed: {response.error}")
            return None

        projects = response.result.get("projects")
        if projects is None:
            projects = []
        if not isinstance(projects, (list, tuple)):
            logger.debug(f"list_projects returned malformed projects: {projects!r}")
            return None

        records = []
        for entry in projects:
            record = ProjectRecord.from_payload(entry)
            if record is not None:
                records.append(record)
        return records

    async def fetch_with_retry(self) -> Optional[List[ProjectRecord]]:
        """Fetch the project list, retrying up to the configured budget.

        Returns:
            Registered projects, or None once every attempt has failed
        """
        for attempt in range(1, self.attempts + 1):
            records = await self.fetch()
            if records is not None:
                return records
            if attempt < self.attempts:
                await self.scheduler.wait(self.retry_interval_ms)

        logger.debug(f"Project registry unavailable after {self.attempts} attempts")
        return None
