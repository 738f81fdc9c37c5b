"""
ResourceScheduler: named periodic and one-shot tasks on a clock.

Purpose
-------
Drive the game's timers (battery regeneration, bonus events, bonus expiry)
on the asyncio loop without capturing stale state: callbacks are invoked
fresh on every firing and read whatever the game state holds at that moment.

Responsibilities
----------------
- Register periodic (`every`) and one-shot (`once`) tasks by name
- Fire each due task once per `run_pending()` call, in due order
- Re-arm periodic tasks at ``fire_time + interval`` (no catch-up bursts)
- Run a background driver (`start`) that sleeps until the next due time or
  until the task table changes
- Cancel every task and the driver as a unit (`stop`)

Design Notes
------------
- Callbacks may be sync or async. A failing callback is logged and the
  scheduler keeps running.
- All firing happens on the loop thread, so callbacks never interleave with
  other game mutations.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from clicker.core.logging.logger import get_logger
from clicker.modules.resource.clock import Clock, MonotonicClock

logger = get_logger(__name__)

TaskCallback = Union[Callable[[], Any], Callable[[], Awaitable[Any]]]


@dataclass
class ScheduledTask:
    name: str
    callback: TaskCallback
    due_at: float
    interval: Optional[float] = None
    fired: int = 0

    @property
    def periodic(self) -> bool:
        return self.interval is not None


class ResourceScheduler:
    """
    Examples
    --------
    >>> scheduler = ResourceScheduler(ManualClock())
    >>> scheduler.every("regen", 0.3, on_regen)
    >>> clock.advance(0.3)
    >>> await scheduler.run_pending()
    1
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock: Clock = clock or MonotonicClock()
        self._tasks: Dict[str, ScheduledTask] = {}
        self._driver: Optional[asyncio.Task[None]] = None
        self._wakeup = asyncio.Event()

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def every(self, name: str, interval: float, callback: TaskCallback) -> ScheduledTask:
        """Fire `callback` every `interval` seconds, first after one interval."""
        if interval <= 0:
            raise ValueError(f"interval for '{name}' must be positive")
        task = ScheduledTask(
            name=name,
            callback=callback,
            due_at=self.clock.now() + interval,
            interval=interval,
        )
        self._register(task)
        return task

    def once(self, name: str, delay: float, callback: TaskCallback) -> ScheduledTask:
        """Fire `callback` once after `delay` seconds; replaces a pending task of the same name."""
        if delay < 0:
            raise ValueError(f"delay for '{name}' cannot be negative")
        task = ScheduledTask(name=name, callback=callback, due_at=self.clock.now() + delay)
        self._register(task)
        return task

    def _register(self, task: ScheduledTask) -> None:
        self._tasks[task.name] = task
        self._wakeup.set()
        logger.debug(
            "Scheduled task armed",
            extra={"task": task.name, "due_at": task.due_at, "interval": task.interval},
        )

    def cancel(self, name: str) -> bool:
        removed = self._tasks.pop(name, None) is not None
        if removed:
            self._wakeup.set()
        return removed

    def cancel_all(self) -> None:
        self._tasks.clear()
        self._wakeup.set()

    def is_scheduled(self, name: str) -> bool:
        return name in self._tasks

    def get_task(self, name: str) -> Optional[ScheduledTask]:
        return self._tasks.get(name)

    def next_due(self) -> Optional[float]:
        if not self._tasks:
            return None
        return min(task.due_at for task in self._tasks.values())

    @property
    def running(self) -> bool:
        return self._driver is not None and not self._driver.done()

    # ------------------------------------------------------------------ #
    # Firing
    # ------------------------------------------------------------------ #

    async def run_pending(self) -> int:
        """
        Fire every task that is due now, once each.

        Returns
        -------
        int:
            Number of tasks fired.
        """
        now = self.clock.now()
        due: List[ScheduledTask] = sorted(
            (task for task in self._tasks.values() if task.due_at <= now),
            key=lambda task: task.due_at,
        )

        fired = 0
        for task in due:
            # An earlier callback may have cancelled or replaced this task.
            if self._tasks.get(task.name) is not task:
                continue

            if task.periodic:
                task.due_at = now + task.interval  # type: ignore[operator]
            else:
                del self._tasks[task.name]

            task.fired += 1
            fired += 1
            await self._invoke(task)

        return fired

    async def _invoke(self, task: ScheduledTask) -> None:
        try:
            result = task.callback()
            if asyncio.iscoroutine(result):
                await result
        except Exception as exc:
            logger.error(
                "Scheduled task failed",
                extra={
                    "task": task.name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )

    # ------------------------------------------------------------------ #
    # Driver
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the background driver on the running loop (idempotent)."""
        if self.running:
            return
        self._driver = asyncio.get_running_loop().create_task(
            self._drive(), name="resource-scheduler"
        )
        logger.info("Resource scheduler started", extra={"tasks": sorted(self._tasks)})

    async def _drive(self) -> None:
        while True:
            await self.run_pending()

            self._wakeup.clear()
            waiters: List[asyncio.Task[Any]] = [asyncio.create_task(self._wakeup.wait())]
            next_due = self.next_due()
            if next_due is not None:
                waiters.append(
                    asyncio.create_task(self.clock.sleep(next_due - self.clock.now()))
                )
            try:
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for waiter in waiters:
                    waiter.cancel()

    async def stop(self) -> None:
        """Cancel the driver and every registered task."""
        driver, self._driver = self._driver, None
        if driver is not None:
            driver.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await driver
        cancelled = sorted(self._tasks)
        self._tasks.clear()
        logger.info("Resource scheduler stopped", extra={"cancelled_tasks": cancelled})
