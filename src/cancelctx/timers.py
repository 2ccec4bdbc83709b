"""Clocks and timer scheduling for deadline cancellation.

Deadlines are wall-clock ``datetime`` values; timers are armed on the
running asyncio event loop. Both sides are protocols so tests can drive
simulated time.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Protocol

from cancelctx.errors import SchedulingError


class TimerHandle(Protocol):
    """A pending one-shot timer."""

    def cancel(self) -> None: ...


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...


class Scheduler(Protocol):
    """Arms one-shot timers."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class AsyncioScheduler:
    """Schedules timers with ``loop.call_later``.

    Without an explicit loop, the loop running at scheduling time is used.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise SchedulingError(
                    "No running event loop to arm a deadline timer; "
                    "derive deadlines inside a coroutine or pass a loop to AsyncioScheduler",
                ) from None
        if loop.is_closed():
            raise SchedulingError("Event loop is closed")
        return loop.call_later(max(delay, 0.0), callback)


def delay_until(deadline: datetime, now: datetime) -> float:
    """Seconds from *now* until *deadline*, clamped at zero."""
    return max(deadline.timestamp() - now.timestamp(), 0.0)
