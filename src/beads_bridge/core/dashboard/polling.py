"""
Self-rescheduling poll loop.

The loop is an explicit state machine::

    IDLE --start()--> SCHEDULED --fire--> RUNNING --completion--> SCHEDULED
      ^                   |                                          |
      +------stop()-------+----------------stop()--------------------+

Each cycle is scheduled ``interval_seconds`` after the previous cycle
*completed*, so cycles never overlap and drift accumulates. A failing cycle
is reported to ``on_error`` and the loop carries on.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    """State of a PollingService."""

    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Schedules a callback after a delay. ``asyncio`` loops satisfy this."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        return asyncio.get_running_loop().call_later(delay, callback)


class PollingService:
    """
    Run ``on_update`` periodically until stopped.

    Example:
        >>> polling = PollingService(refresh_state, interval_seconds=5)
        >>> polling.start()
        >>> ...
        >>> polling.stop()
    """

    def __init__(
        self,
        on_update: Callable[[], Awaitable[None]],
        interval_seconds: float,
        on_error: Callable[[Exception], None] | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.on_update = on_update
        self.interval_seconds = interval_seconds
        self.on_error = on_error
        self.scheduler = scheduler or AsyncioScheduler()
        self.current_cycle: asyncio.Task[None] | None = None
        self._state = PollState.IDLE
        self._handle: Cancellable | None = None
        self._stop_requested = False

    @property
    def state(self) -> PollState:
        return self._state

    def start(self) -> None:
        """Schedule an immediate first cycle. No-op unless idle."""
        if self._state != PollState.IDLE:
            return
        self._stop_requested = False
        self._schedule(0)

    def stop(self) -> None:
        """
        Stop polling.

        A pending cycle is cancelled. A cycle already running finishes but is
        not rescheduled. No-op when idle.
        """
        if self._state == PollState.SCHEDULED:
            if self._handle is not None:
                self._handle.cancel()
            self._handle = None
            self._state = PollState.IDLE
        elif self._state == PollState.RUNNING:
            self._stop_requested = True

    def _schedule(self, delay: float) -> None:
        self._state = PollState.SCHEDULED
        self._handle = self.scheduler.call_later(delay, self._fire)

    def _fire(self) -> None:
        if self._state != PollState.SCHEDULED:
            return
        self._handle = None
        self._state = PollState.RUNNING
        self.current_cycle = asyncio.get_running_loop().create_task(self._run_cycle())

    async def _run_cycle(self) -> None:
        try:
            await self.on_update()
        except asyncio.CancelledError:
            self._stop_requested = False
            self._state = PollState.IDLE
            raise
        except Exception as e:
            logger.warning("Poll cycle failed: %s", e)
            self._report(e)

        if self._stop_requested:
            self._stop_requested = False
            self._state = PollState.IDLE
        else:
            self._schedule(self.interval_seconds)

    def _report(self, error: Exception) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(error)
        except Exception:
            logger.exception("Poll error observer raised")
