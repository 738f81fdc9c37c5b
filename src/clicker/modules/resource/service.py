"""
Battery regeneration and the timed bonus window.

Regeneration adds `charge_level` to the battery per tick, capped at
capacity. Both values are read from the live state on every tick, so an
upgrade bought between ticks applies to the very next one.

The bonus window is transient session state: a bonus tick raises it, an
expiry task or a claim clears it. It is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from clicker.core.logging.logger import get_logger
from clicker.domain.models.game_state import GameState
from clicker.modules.shared.formulas import calculate_bonus_reward

logger = get_logger(__name__)


class ResourceService:

    _metrics: Dict[str, Any] = {
        "regen_ticks": 0,
        "battery_regenerated": 0,
    }

    @staticmethod
    def regenerate(state: GameState) -> int:
        """Apply one regeneration tick; returns the charge actually gained."""
        gained = state.recharge_battery(state.charge_level)
        ResourceService._metrics["regen_ticks"] += 1
        ResourceService._metrics["battery_regenerated"] += gained
        return gained

    @staticmethod
    def get_metrics() -> Dict[str, Any]:
        return dict(ResourceService._metrics)

    @staticmethod
    def reset_metrics() -> None:
        ResourceService._metrics.update(regen_ticks=0, battery_regenerated=0)


@dataclass(frozen=True)
class BonusClaim:
    claimed: bool
    reward: int = 0


class BonusWindow:
    """
    The "bonus available" flag.

    Raising an already-open window keeps it open; claiming a closed window
    does nothing.
    """

    def __init__(self, reward_multiplier: int = 10) -> None:
        self.reward_multiplier = reward_multiplier
        self._available = False
        self._raised_at: Optional[float] = None
        self.raised_count = 0
        self.claimed_count = 0
        self.expired_count = 0

    @property
    def available(self) -> bool:
        return self._available

    @property
    def raised_at(self) -> Optional[float]:
        return self._raised_at

    def open(self, now: Optional[float] = None) -> None:
        self._available = True
        self._raised_at = now
        self.raised_count += 1
        logger.debug("Bonus window opened", extra={"raised_at": now})

    def expire(self) -> bool:
        """Close the window if still open; returns whether it was open."""
        if not self._available:
            return False
        self._available = False
        self._raised_at = None
        self.expired_count += 1
        logger.debug("Bonus window expired unclaimed")
        return True

    def claim(self, state: GameState) -> BonusClaim:
        """Grant ``click_level * reward_multiplier`` and close the window."""
        if not self._available:
            return BonusClaim(claimed=False)

        self._available = False
        self._raised_at = None
        self.claimed_count += 1
        reward = state.apply_income(
            calculate_bonus_reward(state.click_level, self.reward_multiplier)
        )
        logger.info("Bonus claimed", extra={"reward": reward})
        return BonusClaim(claimed=True, reward=reward)

    def reset(self) -> None:
        self._available = False
        self._raised_at = None
