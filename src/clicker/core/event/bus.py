"""
EventBus: in-process async publish/subscribe.

Purpose
-------
Decouple the session engine from its observers. The engine publishes the
domain events drained from the game aggregate plus a ``session.committed``
event after every mutation; persistence and logging subscribe without the
engine knowing about them.

Responsibilities
----------------
- Register listeners for exact names ("upgrade.purchased") or fnmatch
  wildcards ("badge.*", "*")
- Execute listeners in priority tiers:
  - CRITICAL / HIGH: sequential, awaited, timeout-protected
  - NORMAL: concurrent via asyncio.gather, awaited
  - LOW: fire-and-forget background tasks, tracked until done
- Isolate listener errors; one failing listener never affects another or
  the publisher
- Drain or cancel background tasks on shutdown

Design Decisions
----------------
- Registry methods are synchronous; mutations happen on the loop thread.
- Listeners are ordered by (priority, identifier) for deterministic runs.
- Sync callbacks run inline on the loop: listeners may read the game state,
  which is only safe on the loop thread.
"""

from __future__ import annotations

import asyncio
from fnmatch import fnmatchcase
from typing import Any, Dict, List, Optional

from clicker.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from clicker.core.logging.logger import get_logger

logger = get_logger(__name__)

_WILDCARD_CHARS = set("*?[")


class EventBus:
    """
    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("upgrade.purchased", on_upgrade, priority=ListenerPriority.HIGH)
    >>> bus.subscribe("*", audit, priority=ListenerPriority.LOW)
    >>> await bus.publish("upgrade.purchased", {"track": "click"})
    """

    def __init__(
        self,
        *,
        critical_timeout: Optional[float] = 5.0,
        high_timeout: Optional[float] = 5.0,
    ) -> None:
        self._exact: Dict[str, List[EventListener]] = {}
        self._wildcard: Dict[str, List[EventListener]] = {}
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._critical_timeout = critical_timeout
        self._high_timeout = high_timeout
        self._metrics: Dict[str, int] = {
            "published": 0,
            "listener_errors": 0,
            "listener_timeouts": 0,
        }

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event name or wildcard pattern.

        Returns
        -------
        str:
            The listener identifier (for unsubscribing later).

        Raises
        ------
        ValueError:
            If `callback` is not callable.
        """
        if not callable(callback):
            raise ValueError(f"EventBus callback must be callable, got {callback!r}")

        listener = EventListener.from_callback(
            event_name=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )
        table = self._wildcard if _WILDCARD_CHARS & set(event_name) else self._exact
        bucket = table.setdefault(event_name, [])
        if any(existing.identifier == listener.identifier for existing in bucket):
            logger.debug(
                "EventBus: duplicate subscription ignored",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
            return listener.identifier

        bucket.append(listener)
        bucket.sort(key=lambda lst: (lst.priority.value, lst.identifier))
        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        for table in (self._exact, self._wildcard):
            bucket = table.get(event_name)
            if not bucket:
                continue
            remaining = [lst for lst in bucket if lst.identifier != identifier]
            if len(remaining) != len(bucket):
                if remaining:
                    table[event_name] = remaining
                else:
                    del table[event_name]
                return True
        return False

    def clear(self) -> None:
        self._exact.clear()
        self._wildcard.clear()

    def _extract_listeners(self, event_name: str) -> List[EventListener]:
        matched: List[tuple[str, Dict[str, List[EventListener]], EventListener]] = []
        for lst in self._exact.get(event_name, []):
            matched.append((event_name, self._exact, lst))
        for pattern, bucket in self._wildcard.items():
            if fnmatchcase(event_name, pattern):
                matched.extend((pattern, self._wildcard, lst) for lst in bucket)

        # Prune one-shot listeners before they run.
        for key, table, lst in matched:
            if lst.once and lst in table.get(key, []):
                table[key].remove(lst)
                if not table[key]:
                    del table[key]

        listeners = [lst for _, _, lst in matched]
        listeners.sort(key=lambda lst: (lst.priority.value, lst.identifier))
        return listeners

    # ------------------------------------------------------------------ #
    # Publishing
    # ------------------------------------------------------------------ #

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Publish an event to all matching listeners.

        Returns
        -------
        list[Any]:
            Results from CRITICAL/HIGH/NORMAL listeners. LOW-tier listeners
            are fire-and-forget and not included.
        """
        self._metrics["published"] += 1
        listeners = self._extract_listeners(event_name)
        if not listeners:
            return []

        logger.debug(
            "EventBus: publishing event",
            extra={"event_name": event_name, "listener_count": len(listeners)},
        )

        results: list[Any] = []
        for listener in listeners:
            if listener.priority is ListenerPriority.CRITICAL:
                results.append(
                    await self._run_with_timeout(listener, event_name, data, self._critical_timeout)
                )
        for listener in listeners:
            if listener.priority is ListenerPriority.HIGH:
                results.append(
                    await self._run_with_timeout(listener, event_name, data, self._high_timeout)
                )

        normal = [lst for lst in listeners if lst.priority is ListenerPriority.NORMAL]
        if normal:
            results.extend(
                await asyncio.gather(
                    *[self._run_listener(lst, event_name, data) for lst in normal]
                )
            )

        for listener in listeners:
            if listener.priority is ListenerPriority.LOW:
                task = asyncio.get_running_loop().create_task(
                    self._run_listener(listener, event_name, data),
                    name=f"eventbus-low-{event_name}-{listener.identifier}",
                )
                self._background_tasks.add(task)
                task.add_done_callback(self._background_tasks.discard)

        return results

    async def _run_with_timeout(
        self,
        listener: EventListener,
        event_name: str,
        payload: EventPayload,
        timeout: Optional[float],
    ) -> Any:
        if timeout is None or timeout <= 0:
            return await self._run_listener(listener, event_name, payload)
        try:
            return await asyncio.wait_for(
                self._run_listener(listener, event_name, payload), timeout=timeout
            )
        except asyncio.TimeoutError:
            self._metrics["listener_timeouts"] += 1
            logger.error(
                "EventBus listener timeout",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "timeout_seconds": timeout,
                },
            )
            return None

    async def _run_listener(
        self,
        listener: EventListener,
        event_name: str,
        payload: EventPayload,
    ) -> Any:
        try:
            result = listener.callback(payload)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        except Exception as exc:
            # Error isolation: log, count, never propagate to the publisher.
            self._metrics["listener_errors"] += 1
            logger.error(
                "EventBus listener failed",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            return None

    # ------------------------------------------------------------------ #
    # Lifecycle & Introspection
    # ------------------------------------------------------------------ #

    async def drain(self) -> None:
        """Wait for every in-flight LOW-tier task to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel in-flight background tasks and drop all listeners."""
        tasks = list(self._background_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._background_tasks.clear()
        self.clear()

    def get_background_task_count(self) -> int:
        return len(self._background_tasks)

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is None:
            return sum(len(b) for b in self._exact.values()) + sum(
                len(b) for b in self._wildcard.values()
            )
        return len(self._exact.get(event_name, [])) + len(self._wildcard.get(event_name, []))

    def get_metrics(self) -> Dict[str, int]:
        return dict(self._metrics)
