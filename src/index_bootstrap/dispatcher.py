"""Action dispatcher.

Turns a ``Decision`` into calls on the register, refresh and watch
collaborators. Calls are started in the background and the dispatcher returns
at once; only the register chain has ordering: watch and full refresh start
after, and only if, registration reports success.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .decision import Decision
from .finder import ProjectInfo
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

SCOPE_FULL = "Full"


class RegisterCollaborator(Protocol):
    async def execute(self, options: Mapping[str, Any]) -> bool: ...


class ActionCollaborator(Protocol):
    async def execute(self, options: Mapping[str, Any]) -> Any: ...


class ActionDispatcher:
    """Issues exactly one top-level action per decision."""

    def __init__(
        self,
        register: RegisterCollaborator,
        refresh: ActionCollaborator,
        watch: ActionCollaborator,
        scheduler: Scheduler,
    ):
        self.register = register
        self.refresh = refresh
        self.watch = watch
        self.scheduler = scheduler

    @staticmethod
    def build_options(
        project: ProjectInfo, options: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """Copy of the caller's options with the project filled in."""
        merged: Dict[str, Any] = dict(options or {})
        merged["project_root"] = str(project.root)
        merged["manifest_path"] = str(project.manifest_path)
        return merged

    @staticmethod
    def with_full_scope(options: Mapping[str, Any]) -> Dict[str, Any]:
        merged = dict(options)
        merged["scope"] = SCOPE_FULL
        return merged

    def dispatch(
        self,
        decision: Decision,
        project: ProjectInfo,
        options: Optional[Mapping[str, Any]] = None,
    ) -> List["asyncio.Task[Any]"]:
        """Start the effect for ``decision``.

        Returns:
            Background tasks started for the effect (empty for SYNCED)
        """
        opts = self.build_options(project, options)
        root = project.root

        if decision is Decision.SYNCED:
            logger.debug(f"Index service is ready for project: {root}")
            return []

        if decision is Decision.REFRESH_ONLY:
            logger.info(f"VCS changed for {root}. Refreshing...")
            # Incremental scope only
            opts.pop("scope", None)
            return [self._spawn_call("refresh", self.refresh, opts)]

        if decision is Decision.FULL_REFRESH_AND_WATCH:
            logger.info(f"Index missing for {root}. Starting full refresh...")
            return [
                self._spawn_call("refresh", self.refresh, self.with_full_scope(opts)),
                self._spawn_call("watch", self.watch, opts),
            ]

        logger.info(f"Registering and initializing project: {root}")
        return [
            self.scheduler.spawn(
                self._register_chain(opts), name=f"register:{root}"
            )
        ]

    def _spawn_call(
        self, label: str, collaborator: ActionCollaborator, options: Dict[str, Any]
    ) -> "asyncio.Task[Any]":
        return self.scheduler.spawn(
            self._call(label, collaborator, options),
            name=f"{label}:{options['project_root']}",
        )

    async def _call(
        self, label: str, collaborator: ActionCollaborator, options: Dict[str, Any]
    ) -> None:
        try:
            await collaborator.execute(options)
        except Exception:
            logger.warning(
                f"{label} failed for {options['project_root']}", exc_info=True
            )

    async def _register_chain(self, options: Dict[str, Any]) -> bool:
        root = options["project_root"]
        try:
            registered = bool(await self.register.execute(options))
        except Exception:
            logger.warning(f"Registration failed for {root}", exc_info=True)
            registered = False

        if not registered:
            logger.info(f"Registration of {root} did not succeed; skipping watch and refresh")
            return False

        self._spawn_call("watch", self.watch, options)
        self._spawn_call("refresh", self.refresh, self.with_full_scope(options))
        return True
