"""Timer abstraction for the bootstrap pipeline.

All waiting and fire-and-forget work goes through a ``Scheduler`` so the poll
loop can be driven by a fake clock in tests.
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional, Protocol, Set

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Deferred execution primitives used by the poller and dispatcher."""

    async def wait(self, delay_ms: int) -> None:
        """Suspend the caller for ``delay_ms`` milliseconds."""
        ...

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> "asyncio.Task[Any]":
        """Run ``coro`` in the background without waiting for it."""
        ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop.

    Spawned tasks are kept referenced until they finish, otherwise the loop
    may garbage-collect them mid-flight.
    """

    def __init__(self) -> None:
        self._tasks: Set["asyncio.Task[Any]"] = set()

    async def wait(self, delay_ms: int) -> None:
        await asyncio.sleep(delay_ms / 1000.0)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> "asyncio.Task[Any]":
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        """Number of spawned tasks that have not finished yet."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every spawned task (including ones they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
