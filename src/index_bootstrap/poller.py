"""Reachability poller.

Drives one bootstrap attempt through ``IDLE -> POLLING -> CONNECTED |
EXHAUSTED``. Each tick pings the service; once it answers, the resolution
callback runs. A resolution that cannot proceed yet (no project found) asks
for another tick, which costs one attempt from the same budget.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .rpc import RpcChannel
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollPhase(Enum):
    IDLE = "idle"
    POLLING = "polling"
    CONNECTED = "connected"
    EXHAUSTED = "exhausted"


@dataclass
class PollState:
    """Retry budget of one bootstrap attempt.

    ``retries_remaining`` counts the attempts still allowed, including the one
    about to start, so a fresh state with a budget of 30 permits exactly 30
    liveness probes.
    """

    retries_remaining: int
    interval_ms: int

    def __post_init__(self):
        if self.retries_remaining < 0:
            raise ValueError("retries_remaining must be non-negative")
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be positive")

    def take_attempt(self) -> bool:
        """Consume one attempt. False when the budget is already spent."""
        if self.retries_remaining <= 0:
            return False
        self.retries_remaining -= 1
        return True

    @property
    def exhausted(self) -> bool:
        return self.retries_remaining == 0


@dataclass
class PollOutcome(Generic[T]):
    """Terminal state of a poll run and the resolution result, if any."""

    phase: PollPhase
    attempts: int
    result: Optional[T] = None


class ReachabilityPoller:
    """Bounded liveness polling with an injected scheduler."""

    def __init__(
        self,
        rpc: RpcChannel,
        scheduler: Scheduler,
        max_attempts: int = 30,
        warmup_ms: int = 200,
        ping_retry_interval_ms: int = 500,
        discovery_retry_interval_ms: int = 1000,
    ):
        self.rpc = rpc
        self.scheduler = scheduler
        self.max_attempts = max_attempts
        self.warmup_ms = warmup_ms
        self.ping_retry_interval_ms = ping_retry_interval_ms
        self.discovery_retry_interval_ms = discovery_retry_interval_ms
        self.phase = PollPhase.IDLE

    async def ping(self) -> bool:
        response = await self.rpc.request("ping", {"process_id": os.getpid()})
        return response.ok

    async def run(self, resolve: Callable[[], Awaitable[Optional[T]]]) -> PollOutcome[T]:
        """Poll until ``resolve`` produces a result or the budget runs out.

        Args:
            resolve: Called once per successful ping. Returning None means
                "not yet" and re-arms the poll after the discovery interval.

        Returns:
            CONNECTED with the resolution result, or EXHAUSTED
        """
        state = PollState(retries_remaining=self.max_attempts, interval_ms=self.warmup_ms)
        self.phase = PollPhase.POLLING
        attempts = 0

        await self.scheduler.wait(state.interval_ms)
        while state.take_attempt():
            attempts += 1
            if await self.ping():
                result = await resolve()
                if result is not None:
                    self.phase = PollPhase.CONNECTED
                    return PollOutcome(PollPhase.CONNECTED, attempts, result)
                state.interval_ms = self.discovery_retry_interval_ms
            else:
                state.interval_ms = self.ping_retry_interval_ms

            if state.exhausted:
                break
            logger.debug(
                f"Poll attempt {attempts} did not complete, "
                f"{state.retries_remaining} left, retrying in {state.interval_ms}ms"
            )
            await self.scheduler.wait(state.interval_ms)

        self.phase = PollPhase.EXHAUSTED
        logger.debug(f"Gave up reaching index service after {attempts} attempts")
        return PollOutcome(PollPhase.EXHAUSTED, attempts)
