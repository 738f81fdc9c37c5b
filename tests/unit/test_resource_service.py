"""
Unit Tests for Battery Regeneration and the Bonus Window
"""

import pytest

from clicker.domain.models import GameState
from clicker.modules.resource.service import BonusWindow, ResourceService


@pytest.mark.unit
class TestRegenerate:

    def test_adds_charge_level(self):
        state = GameState(battery_current=100, charge_level=10)

        gained = ResourceService.regenerate(state)

        assert gained == 10
        assert state.battery.current == 110

    def test_capped_at_capacity(self):
        state = GameState(battery_current=145, charge_level=10)

        assert ResourceService.regenerate(state) == 5
        assert state.battery.is_full

    def test_full_battery_gains_nothing(self, state):
        assert ResourceService.regenerate(state) == 0
        assert state.get_pending_events() == []

    def test_reads_live_charge_level(self):
        state = GameState(battery_current=0, charge_level=10)
        ResourceService.regenerate(state)

        state.raise_charge_level(5)
        ResourceService.regenerate(state)

        assert state.battery.current == 25
        assert ResourceService.get_metrics() == {"regen_ticks": 2, "battery_regenerated": 25}


@pytest.mark.unit
class TestBonusWindow:

    def test_claim_pays_click_level_times_multiplier(self):
        window = BonusWindow(reward_multiplier=10)
        state = GameState(click_level=4)
        window.open(now=15.0)

        claim = window.claim(state)

        assert claim.claimed
        assert claim.reward == 40
        assert state.currency == 40
        assert not window.available

    def test_claim_when_closed(self, state):
        claim = BonusWindow().claim(state)

        assert not claim.claimed
        assert state.currency == 0

    def test_second_claim_pays_nothing(self, state):
        window = BonusWindow()
        window.open()
        window.claim(state)

        assert not window.claim(state).claimed
        assert state.currency == 10

    def test_expire(self):
        window = BonusWindow()
        assert window.expire() is False

        window.open(now=1.0)
        assert window.raised_at == 1.0
        assert window.expire() is True
        assert not window.available
        assert window.expired_count == 1

    def test_reset(self):
        window = BonusWindow()
        window.open()

        window.reset()

        assert not window.available
        assert window.raised_at is None
