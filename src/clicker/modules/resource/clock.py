"""
Clock abstraction for the resource scheduler.

`MonotonicClock` is the production clock. `ManualClock` only moves when told
to, which makes timer behaviour deterministic in tests.
"""

from __future__ import annotations

import asyncio
import time
from typing import List, Protocol, Tuple


class Clock(Protocol):
    def now(self) -> float:
        """Seconds on a monotonic timeline."""
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class MonotonicClock:
    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))


class ManualClock:
    """
    Clock advanced by hand.

    >>> clock = ManualClock()
    >>> clock.advance(0.3)
    >>> clock.now()
    0.3
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._sleepers: List[Tuple[float, asyncio.Future[None]]] = []

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        """Move time forward and wake every sleeper whose deadline passed."""
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")
        self._now += seconds

        pending: List[Tuple[float, asyncio.Future[None]]] = []
        for deadline, future in self._sleepers:
            if future.done():
                continue
            if deadline <= self._now:
                future.set_result(None)
            else:
                pending.append((deadline, future))
        self._sleepers = pending

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._sleepers.append((self._now + seconds, future))
        await future
