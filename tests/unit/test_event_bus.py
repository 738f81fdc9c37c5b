"""
Unit Tests for EventBus
=======================

Test Coverage
-------------
- Priority tiers and ordering
- Wildcard subscriptions
- One-shot listeners, duplicates, unsubscribe
- Error isolation
- LOW-tier background tasks and drain
"""

import pytest

from clicker.core.event.bus import EventBus
from clicker.core.event.types import ListenerPriority


@pytest.mark.unit
class TestEventBus:

    async def test_priority_order(self, event_bus):
        order = []
        event_bus.subscribe("e", lambda p: order.append("normal"), identifier="n")
        event_bus.subscribe("e", lambda p: order.append("high"), priority=ListenerPriority.HIGH, identifier="h")
        event_bus.subscribe(
            "e", lambda p: order.append("critical"), priority=ListenerPriority.CRITICAL, identifier="c"
        )

        await event_bus.publish("e", {})

        assert order == ["critical", "high", "normal"]

    async def test_async_listener_result_returned(self, event_bus):
        async def listener(payload):
            return payload["value"] * 2

        event_bus.subscribe("e", listener)

        assert await event_bus.publish("e", {"value": 21}) == [42]

    async def test_wildcard(self, event_bus):
        seen = []
        event_bus.subscribe("badge.*", lambda p: seen.append(p["id"]))

        await event_bus.publish("badge.owned", {"id": "tung"})
        await event_bus.publish("theme.toggled", {"id": "nope"})

        assert seen == ["tung"]

    async def test_once(self, event_bus):
        seen = []
        event_bus.subscribe("e", lambda p: seen.append(1), once=True)

        await event_bus.publish("e", {})
        await event_bus.publish("e", {})

        assert seen == [1]
        assert event_bus.get_listener_count("e") == 0

    async def test_failing_listener_isolated(self, event_bus):
        seen = []

        def broken(payload):
            raise RuntimeError("boom")

        event_bus.subscribe("e", broken, identifier="a-broken")
        event_bus.subscribe("e", lambda p: seen.append(1), identifier="b-ok")

        results = await event_bus.publish("e", {})

        assert results == [None, None]
        assert seen == [1]
        assert event_bus.get_metrics()["listener_errors"] == 1

    async def test_low_priority_runs_in_background(self, event_bus):
        seen = []

        async def slow(payload):
            seen.append(payload["n"])

        event_bus.subscribe("e", slow, priority=ListenerPriority.LOW)

        results = await event_bus.publish("e", {"n": 1})
        await event_bus.drain()

        assert results == []
        assert seen == [1]
        assert event_bus.get_background_task_count() == 0

    def test_unsubscribe(self, event_bus):
        identifier = event_bus.subscribe("e", lambda p: None)

        assert event_bus.unsubscribe("e", identifier)
        assert not event_bus.unsubscribe("e", identifier)
        assert event_bus.get_listener_count() == 0

    def test_rejects_non_callable(self, event_bus):
        with pytest.raises(ValueError):
            event_bus.subscribe("e", "not callable")
