"""Clock sources used to pace frame production.

``RealTimeSource`` sleeps on the asyncio loop. ``SimTimeSource`` lets tests
drive frame ticks deterministically:

    ts = SimTimeSource(start=0.0)
    task = asyncio.create_task(ts.sleep(1 / 30))
    ts.advance(1 / 30)  # wakes the sleeper
    await task
"""

from __future__ import annotations

import asyncio
import heapq
import time
from typing import Protocol

__all__ = [
    "TimeSource",
    "RealTimeSource",
    "SimTimeSource",
]


class TimeSource(Protocol):
    def monotonic(self) -> float:
        """Return monotonic time in seconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Sleep for the specified number of seconds."""
        ...


class RealTimeSource:
    """Real-time implementation using time.monotonic and asyncio.sleep."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class SimTimeSource:
    """Deterministic simulated clock.

    - ``advance(dt)`` steps time forward and resolves due sleepers
    - ``sleep(sec)`` registers a waiter until current time >= due time
    - ``sleep(0)`` just yields to the loop
    """

    def __init__(self, *, start: float = 0.0) -> None:
        self._now: float = float(start)
        # (due_time, seq, future); seq breaks ties in FIFO order
        self._sleepers: list[tuple[float, int, asyncio.Future[None]]] = []
        self._seq: int = 0

    def monotonic(self) -> float:
        return self._now

    def advance(self, dt: float) -> None:
        if dt < 0:
            raise ValueError(f"Cannot advance time backwards: dt={dt}")
        self._now += dt
        self._wake_due_sleepers()

    async def sleep(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Sleep duration must be non-negative: {seconds}")
        if seconds == 0:
            await asyncio.sleep(0)
            return
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._seq += 1
        heapq.heappush(self._sleepers, (self._now + seconds, self._seq, future))
        await future

    def next_due_monotonic(self) -> float | None:
        """Return the due time of the earliest pending sleeper, if any."""
        if not self._sleepers:
            return None
        return self._sleepers[0][0]

    def _wake_due_sleepers(self) -> None:
        while self._sleepers and self._sleepers[0][0] <= self._now:
            _, _, future = heapq.heappop(self._sleepers)
            # Skip futures cancelled along with their sleeping task
            if not future.done():
                future.set_result(None)
