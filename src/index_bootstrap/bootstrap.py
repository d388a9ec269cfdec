"""Bootstrap orchestrator.

One activation: start the service, poll until it answers, then run the
resolution pipeline Locate -> Query -> Decide -> Dispatch exactly once.
Nothing here raises into the host; every failure either retries within a
budget or ends the attempt quietly with a status.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Set

from .commands import RefreshCommand, SetupCommand, WatchCommand
from .config import Config
from .decision import Decision, decide
from .dispatcher import ActionCollaborator, ActionDispatcher, RegisterCollaborator
from .environment import Environment
from .finder import ProjectFinder, ProjectInfo, locate_project
from .paths import get_index_path, normalize
from .poller import PollPhase, ReachabilityPoller
from .registry import RegistryQuery, find_project_record
from .rpc import RpcChannel, RpycChannel
from .scheduler import AsyncioScheduler, Scheduler
from .service import ServiceHandle
from .socket_helper import get_socket_path
from .staleness import StalenessDetector

logger = logging.getLogger(__name__)


class BootstrapStatus(Enum):
    DISPATCHED = "dispatched"
    EXHAUSTED = "exhausted"
    REGISTRY_UNAVAILABLE = "registry_unavailable"
    ALREADY_IN_FLIGHT = "already_in_flight"


@dataclass(frozen=True)
class BootstrapResult:
    """How one activation ended."""

    status: BootstrapStatus
    project: Optional[ProjectInfo] = None
    decision: Optional[Decision] = None


class Bootstrapper:
    """Wires the bootstrap pipeline together for a host."""

    def __init__(
        self,
        config: Config,
        environment: Environment,
        rpc: RpcChannel,
        service: ServiceHandle,
        scheduler: Optional[Scheduler] = None,
        register: Optional[RegisterCollaborator] = None,
        refresh: Optional[ActionCollaborator] = None,
        watch: Optional[ActionCollaborator] = None,
        staleness: Optional[StalenessDetector] = None,
        case_sensitive: Optional[bool] = None,
    ):
        self.config = config
        self.environment = environment
        self.rpc = rpc
        self.service = service
        self.scheduler = scheduler or AsyncioScheduler()
        self.finder = ProjectFinder(config.project.manifest_patterns)
        self.staleness = staleness or StalenessDetector(
            min_index_size=config.index.min_index_size
        )
        self.dispatcher = ActionDispatcher(
            register=register or SetupCommand(rpc),
            refresh=refresh or RefreshCommand(rpc),
            watch=watch or WatchCommand(rpc),
            scheduler=self.scheduler,
        )
        self.case_sensitive = case_sensitive
        # Normalized roots whose resolution cycle is running
        self._in_flight: Set[str] = set()

    @classmethod
    def from_config(cls, config: Config, environment: Environment) -> "Bootstrapper":
        """Build a bootstrapper using the rpyc transport and the configured service."""
        socket_path = get_socket_path(config.service.socket_path)
        return cls(
            config=config,
            environment=environment,
            rpc=RpycChannel(socket_path, config.service.request_timeout),
            service=ServiceHandle(config.service.command, socket_path),
        )

    def index_path_for(self, project: ProjectInfo) -> Path:
        return get_index_path(project.root, self.config.index.index_dir, self.case_sensitive)

    def activate(self, options: Optional[Mapping[str, Any]] = None) -> "asyncio.Task[BootstrapResult]":
        """Start one bootstrap attempt without blocking the caller.

        Must be called from within a running event loop.

        Returns:
            Task resolving to the attempt's BootstrapResult
        """
        self.service.ensure_started()
        return self.scheduler.spawn(self.run(options), name="bootstrap")

    async def run(self, options: Optional[Mapping[str, Any]] = None) -> BootstrapResult:
        """The whole attempt: poll, then resolve once."""
        polling = self.config.polling
        poller = ReachabilityPoller(
            rpc=self.rpc,
            scheduler=self.scheduler,
            max_attempts=polling.max_attempts,
            warmup_ms=polling.warmup_ms,
            ping_retry_interval_ms=polling.ping_retry_interval_ms,
            discovery_retry_interval_ms=polling.discovery_retry_interval_ms,
        )

        async def resolve() -> Optional[BootstrapResult]:
            return await self.resolve(options)

        outcome = await poller.run(resolve)
        if outcome.phase is PollPhase.CONNECTED and outcome.result is not None:
            return outcome.result
        return BootstrapResult(BootstrapStatus.EXHAUSTED)

    async def resolve(self, options: Optional[Mapping[str, Any]] = None) -> Optional[BootstrapResult]:
        """One resolution cycle against a reachable service.

        Returns:
            None when no project could be located (the poller retries), else
            the terminal result of this attempt
        """
        # Filesystem walk stays off the event loop
        project = await asyncio.to_thread(locate_project, self.environment, self.finder)
        if project is None:
            logger.debug("No project found from working directory or active document")
            return None

        key = normalize(project.root, self.case_sensitive)
        if key in self._in_flight:
            logger.debug(f"Bootstrap already in progress for {project.root}")
            return BootstrapResult(BootstrapStatus.ALREADY_IN_FLIGHT, project)

        self._in_flight.add(key)
        try:
            return await self._reconcile(project, options)
        finally:
            self._in_flight.discard(key)

    async def _reconcile(
        self, project: ProjectInfo, options: Optional[Mapping[str, Any]]
    ) -> BootstrapResult:
        polling = self.config.polling
        registry = RegistryQuery(
            self.rpc,
            self.scheduler,
            attempts=polling.registry_attempts,
            retry_interval_ms=polling.registry_retry_interval_ms,
        )
        records = await registry.fetch_with_retry()
        if records is None:
            return BootstrapResult(BootstrapStatus.REGISTRY_UNAVAILABLE, project)

        index_path = self.index_path_for(project)
        record = find_project_record(records, project.root, self.case_sensitive)
        if record is None:
            decision = decide(is_registered=False, index_valid=False, fingerprint_changed=False)
        else:
            report = await asyncio.to_thread(
                self.staleness.evaluate, project.root, index_path, record.vcs_fingerprint
            )
            decision = decide(
                is_registered=True,
                index_valid=report.index_valid,
                fingerprint_changed=report.fingerprint_changed,
            )

        dispatch_options = dict(options or {})
        dispatch_options["index_path"] = str(index_path)
        self.dispatcher.dispatch(decision, project, dispatch_options)
        return BootstrapResult(BootstrapStatus.DISPATCHED, project, decision)
