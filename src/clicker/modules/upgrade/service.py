"""
Upgrade purchases across the three progression tracks.

| Track   | Effect                      | Next cost            |
|---------|-----------------------------|----------------------|
| click   | click_level += effect       | ceil(cost * 1.10)    |
| battery | battery.capacity += effect  | ceil(cost * 1.20)    |
| charge  | charge_level += effect      | ceil(cost * 1.20)    |

A purchase either debits the price, applies the effect and grows the price,
or raises `InsufficientFundsError` having changed nothing. Costs grow without
a cap.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from clicker.core.logging.logger import get_logger
from clicker.domain.models.game_state import GameState, UpgradeTrack
from clicker.modules.shared.exceptions import InsufficientFundsError
from clicker.modules.shared.formulas import calculate_next_cost
from clicker.modules.shared.settings import EconomySettings

logger = get_logger(__name__)


@dataclass(frozen=True)
class UpgradeReceipt:
    track: UpgradeTrack
    price_paid: int
    new_level: int
    next_cost: int


class UpgradeService:

    _metrics: Dict[str, Any] = {
        "purchases": 0,
        "rejected": 0,
        "currency_spent": 0,
        "total_purchase_time_ms": 0.0,
    }

    @staticmethod
    def can_afford(state: GameState, track: UpgradeTrack) -> bool:
        return state.can_afford(state.upgrade_cost(track))

    @staticmethod
    def purchase(
        state: GameState,
        track: UpgradeTrack | str,
        settings: Optional[EconomySettings] = None,
    ) -> UpgradeReceipt:
        """
        Buy one level on `track`.

        Args:
            state: Live game aggregate
            track: Upgrade track or its name
            settings: Growth factors and effects (defaults if omitted)

        Returns:
            UpgradeReceipt with the price paid and the next price.

        Raises:
            InsufficientFundsError: Not enough currency; state unchanged.
            DomainValidationError: Unknown track name.
        """
        start_time = time.perf_counter()
        settings = settings or EconomySettings()
        track = UpgradeTrack.parse(track)

        price = state.upgrade_cost(track)
        next_cost = calculate_next_cost(price, settings.growth_factors[track])
        effect = settings.upgrade_effects[track]

        try:
            state.spend(price, item=f"upgrade:{track.value}")
        except InsufficientFundsError:
            UpgradeService._metrics["rejected"] += 1
            raise

        if track is UpgradeTrack.CLICK:
            state.raise_click_level(effect)
            new_level = state.click_level
        elif track is UpgradeTrack.BATTERY:
            state.set_battery_capacity(state.battery.capacity + effect)
            new_level = state.battery.capacity
        else:
            state.raise_charge_level(effect)
            new_level = state.charge_level

        state.set_upgrade_cost(track, next_cost)

        UpgradeService._metrics["purchases"] += 1
        UpgradeService._metrics["currency_spent"] += price
        UpgradeService._metrics["total_purchase_time_ms"] += (
            time.perf_counter() - start_time
        ) * 1000

        logger.info(
            "Upgrade purchased",
            extra={
                "track": track.value,
                "price_paid": price,
                "new_level": new_level,
                "next_cost": next_cost,
            },
        )
        return UpgradeReceipt(
            track=track,
            price_paid=price,
            new_level=new_level,
            next_cost=next_cost,
        )

    @staticmethod
    def get_metrics() -> Dict[str, Any]:
        metrics = dict(UpgradeService._metrics)
        purchases = metrics["purchases"]
        metrics["avg_purchase_time_ms"] = (
            metrics["total_purchase_time_ms"] / purchases if purchases else 0.0
        )
        return metrics

    @staticmethod
    def reset_metrics() -> None:
        UpgradeService._metrics.update(
            purchases=0, rejected=0, currency_spent=0, total_purchase_time_ms=0.0
        )
