"""
Unit Tests for EconomyService
=============================

Test Coverage
-------------
- Full clicks: income and battery drain
- Partial clicks when the battery holds less than a full click
- Refusal on an empty battery
- Metrics

Testing Strategy
----------------
- Real GameState aggregates, no mocks
- AAA pattern (Arrange, Act, Assert)
"""

import pytest

from clicker.domain.models import GameState
from clicker.modules.economy.service import EconomyService
from clicker.modules.shared.exceptions import BatteryEmptyError


@pytest.mark.unit
class TestClick:

    def test_first_click_on_fresh_game(self, state):
        """Level 1, common badge: +1 coin, -1 battery."""
        # Act
        result = EconomyService.click(state, multiplier=1)

        # Assert
        assert result.income == 1
        assert result.battery_spent == 1
        assert not result.partial
        assert state.currency == 1
        assert state.battery.current == 149

    def test_income_uses_rarity_multiplier(self):
        # Arrange
        state = GameState(click_level=10)

        # Act
        result = EconomyService.click(state, multiplier=3)

        # Assert
        assert result.income == 30
        assert result.battery_spent == 5
        assert state.battery.current == 145

    def test_partial_click_pays_remaining_charge(self):
        """Battery 3 with a click cost of 5 pays 3 units and empties the battery."""
        # Arrange
        state = GameState(click_level=10, battery_current=3)

        # Act
        result = EconomyService.click(state, multiplier=2)

        # Assert
        assert result.partial
        assert result.income == 6
        assert result.battery_spent == 3
        assert state.battery.is_empty

    def test_empty_battery_refused(self):
        # Arrange
        state = GameState(battery_current=0)
        state.clear_domain_events()

        # Act / Assert
        with pytest.raises(BatteryEmptyError):
            EconomyService.click(state, multiplier=1)

        assert state.currency == 0
        assert state.get_pending_events() == []
        assert not EconomyService.can_click(state)

    def test_click_emits_income_and_drain_events(self, state):
        EconomyService.click(state, multiplier=1)

        names = [event.event_name for event in state.clear_domain_events()]

        assert names == ["economy.income_applied", "battery.drained"]

    def test_income_per_click(self):
        assert EconomyService.income_per_click(GameState(click_level=4), 5) == 20


@pytest.mark.unit
class TestEconomyMetrics:

    def test_metrics_track_clicks(self):
        state = GameState(click_level=10, battery_current=7)

        EconomyService.click(state, multiplier=1)  # full, 5 charge
        EconomyService.click(state, multiplier=1)  # partial, 2 charge
        with pytest.raises(BatteryEmptyError):
            EconomyService.click(state, multiplier=1)

        metrics = EconomyService.get_metrics()
        assert metrics["clicks"] == 2
        assert metrics["partial_clicks"] == 1
        assert metrics["refused_clicks"] == 1
        assert metrics["total_income"] == 12
