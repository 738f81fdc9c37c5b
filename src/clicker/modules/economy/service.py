"""
Click income: the primary action of the game.

Converts battery charge into currency at the active badge's rarity
multiplier. A full click costs ``max(1, click_level // 2)`` charge and earns
``click_level * multiplier``; a battery holding less than that pays out what
is left, and an empty battery refuses the action.

Features:
- Full and partial clicks with exact battery accounting
- Income saturation handled by the aggregate
- Per-service metrics for monitoring

Compliance:
- Pure domain operations on `GameState` (no timers, no I/O)
- Domain exceptions only
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from clicker.core.logging.logger import get_logger
from clicker.domain.models.game_state import GameState
from clicker.modules.shared.exceptions import BatteryEmptyError
from clicker.modules.shared.formulas import battery_cost_for_click, calculate_click_income

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClickResult:
    income: int
    battery_spent: int
    multiplier: int
    partial: bool


class EconomyService:
    """Stateless click economy over a `GameState`."""

    _metrics: Dict[str, Any] = {
        "clicks": 0,
        "partial_clicks": 0,
        "refused_clicks": 0,
        "total_income": 0,
    }

    @staticmethod
    def can_click(state: GameState) -> bool:
        return not state.battery.is_empty

    @staticmethod
    def income_per_click(state: GameState, multiplier: int) -> int:
        return calculate_click_income(state.click_level, multiplier)

    @staticmethod
    def click(state: GameState, multiplier: int) -> ClickResult:
        """
        Spend battery for currency.

        Args:
            state: Live game aggregate
            multiplier: Rarity multiplier of the current badge (>= 1)

        Returns:
            ClickResult describing income and charge used.

        Raises:
            BatteryEmptyError: Battery is empty; state unchanged.
        """
        battery = state.battery
        if battery.is_empty:
            EconomyService._metrics["refused_clicks"] += 1
            raise BatteryEmptyError(capacity=battery.capacity)

        cost = battery_cost_for_click(state.click_level)
        partial = battery.current < cost

        if partial:
            units = battery.current
            spent = battery.current
        else:
            units = state.click_level
            spent = cost

        income = state.apply_income(calculate_click_income(units, multiplier))
        state.drain_battery(spent)

        EconomyService._metrics["clicks"] += 1
        EconomyService._metrics["total_income"] += income
        if partial:
            EconomyService._metrics["partial_clicks"] += 1
            logger.debug(
                "Partial click drained battery",
                extra={"income": income, "battery_spent": spent, "multiplier": multiplier},
            )

        return ClickResult(
            income=income,
            battery_spent=spent,
            multiplier=multiplier,
            partial=partial,
        )

    @staticmethod
    def get_metrics() -> Dict[str, Any]:
        return dict(EconomyService._metrics)

    @staticmethod
    def reset_metrics() -> None:
        for key in EconomyService._metrics:
            EconomyService._metrics[key] = 0
