"""
Unit Tests for ResourceScheduler
================================

Test Coverage
-------------
- Periodic and one-shot registration
- Due-order firing, one firing per task per run
- Re-arming without catch-up bursts
- Cancellation (single, all, from inside a callback)
- Failing callbacks do not stop the scheduler
- Background driver on a manual clock

Testing Strategy
----------------
- ManualClock drives time; `run_pending()` fires synchronously
"""

import asyncio

import pytest

from clicker.modules.resource.clock import ManualClock
from clicker.modules.resource.scheduler import ResourceScheduler


@pytest.mark.unit
class TestRegistration:

    def test_every_rejects_non_positive_interval(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.every("regen", 0, lambda: None)

    def test_once_rejects_negative_delay(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.once("expiry", -1, lambda: None)

    def test_next_due(self, scheduler):
        assert scheduler.next_due() is None

        scheduler.every("regen", 0.3, lambda: None)
        scheduler.once("expiry", 0.1, lambda: None)

        assert scheduler.next_due() == pytest.approx(0.1)

    def test_once_replaces_same_name(self, scheduler, manual_clock):
        scheduler.once("expiry", 3, lambda: None)
        manual_clock.advance(2)

        task = scheduler.once("expiry", 3, lambda: None)

        assert task.due_at == pytest.approx(5)


@pytest.mark.unit
class TestRunPending:

    async def test_nothing_fires_before_due(self, scheduler, manual_clock):
        calls = []
        scheduler.every("regen", 0.3, lambda: calls.append("regen"))

        manual_clock.advance(0.2)

        assert await scheduler.run_pending() == 0
        assert calls == []

    async def test_periodic_fires_each_interval(self, scheduler, manual_clock):
        calls = []
        scheduler.every("regen", 0.3, lambda: calls.append(manual_clock.now()))

        for _ in range(3):
            manual_clock.advance(0.3)
            await scheduler.run_pending()

        assert len(calls) == 3
        assert scheduler.get_task("regen").fired == 3

    async def test_no_catch_up_after_long_gap(self, scheduler, manual_clock):
        """A missed stretch of ticks fires once and re-arms from now."""
        calls = []
        scheduler.every("regen", 0.3, lambda: calls.append(1))

        manual_clock.advance(3.0)
        fired = await scheduler.run_pending()

        assert fired == 1
        assert calls == [1]
        assert scheduler.get_task("regen").due_at == pytest.approx(3.3)

    async def test_once_fires_and_unregisters(self, scheduler, manual_clock):
        calls = []
        scheduler.once("expiry", 3, lambda: calls.append(1))

        manual_clock.advance(3)
        await scheduler.run_pending()
        manual_clock.advance(3)
        await scheduler.run_pending()

        assert calls == [1]
        assert not scheduler.is_scheduled("expiry")

    async def test_fires_in_due_order(self, scheduler, manual_clock):
        order = []
        scheduler.every("late", 0.5, lambda: order.append("late"))
        scheduler.once("early", 0.2, lambda: order.append("early"))

        manual_clock.advance(1)
        await scheduler.run_pending()

        assert order == ["early", "late"]

    async def test_async_callbacks_awaited(self, scheduler, manual_clock):
        calls = []

        async def callback():
            calls.append("async")

        scheduler.once("job", 0, callback)
        await scheduler.run_pending()

        assert calls == ["async"]

    async def test_callback_can_cancel_a_later_task(self, scheduler, manual_clock):
        calls = []
        scheduler.once("first", 0.1, lambda: scheduler.cancel("second"))
        scheduler.once("second", 0.2, lambda: calls.append("second"))

        manual_clock.advance(1)
        await scheduler.run_pending()

        assert calls == []

    async def test_failing_callback_is_isolated(self, scheduler, manual_clock):
        calls = []

        def explode():
            raise RuntimeError("boom")

        scheduler.every("bad", 0.1, explode)
        scheduler.every("good", 0.1, lambda: calls.append(1))

        manual_clock.advance(0.1)
        fired = await scheduler.run_pending()

        assert fired == 2
        assert calls == [1]
        assert scheduler.is_scheduled("bad")

    def test_cancel_all(self, scheduler):
        scheduler.every("a", 1, lambda: None)
        scheduler.every("b", 1, lambda: None)

        scheduler.cancel_all()

        assert scheduler.next_due() is None
        assert scheduler.cancel("a") is False


@pytest.mark.unit
class TestDriver:

    async def test_driver_fires_when_clock_advances(self):
        clock = ManualClock()
        scheduler = ResourceScheduler(clock)
        fired = asyncio.Event()
        scheduler.every("regen", 0.3, fired.set)

        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0)
        clock.advance(0.3)

        await asyncio.wait_for(fired.wait(), timeout=1)
        await scheduler.stop()

        assert not scheduler.running
        assert scheduler.next_due() is None

    async def test_start_is_idempotent(self, scheduler):
        scheduler.start()
        driver = scheduler._driver

        scheduler.start()

        assert scheduler._driver is driver
        await scheduler.stop()
