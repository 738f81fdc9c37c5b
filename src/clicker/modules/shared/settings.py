"""
Typed game tunables.

`EconomySettings` gathers every balance knob in one frozen object so the
services take plain values instead of reading configuration themselves.
`from_config_manager()` reads the YAML-backed `ConfigManager`; the class
defaults match the shipped `config/economy.yaml`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from clicker.core.exceptions import ConfigurationError
from clicker.domain.models.badge import DEFAULT_BADGE_ID
from clicker.domain.models.game_state import GameState, Theme, UpgradeTrack


def _default_growth() -> Dict[UpgradeTrack, float]:
    return {
        UpgradeTrack.CLICK: 1.10,
        UpgradeTrack.BATTERY: 1.20,
        UpgradeTrack.CHARGE: 1.20,
    }


def _default_effects() -> Dict[UpgradeTrack, int]:
    return {
        UpgradeTrack.CLICK: 1,
        UpgradeTrack.BATTERY: 50,
        UpgradeTrack.CHARGE: 1,
    }


def _default_costs() -> Dict[UpgradeTrack, int]:
    return {
        UpgradeTrack.CLICK: 100,
        UpgradeTrack.BATTERY: 200,
        UpgradeTrack.CHARGE: 150,
    }


@dataclass(frozen=True)
class EconomySettings:
    # Scheduler (seconds)
    regen_interval_seconds: float = 0.3
    bonus_interval_seconds: float = 15.0
    bonus_window_seconds: float = 3.0
    bonus_multiplier: int = 10

    # Upgrade tracks
    growth_factors: Dict[UpgradeTrack, float] = field(default_factory=_default_growth)
    upgrade_effects: Dict[UpgradeTrack, int] = field(default_factory=_default_effects)

    # Starting state
    starting_currency: int = 0
    starting_battery_capacity: int = 150
    starting_click_level: int = 1
    starting_charge_level: int = 10
    starting_costs: Dict[UpgradeTrack, int] = field(default_factory=_default_costs)
    default_badge_id: str = DEFAULT_BADGE_ID

    def __post_init__(self) -> None:
        for name in ("regen_interval_seconds", "bonus_interval_seconds", "bonus_window_seconds"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(name, "must be greater than zero")
        if self.bonus_window_seconds >= self.bonus_interval_seconds:
            raise ConfigurationError(
                "bonus_window_seconds", "must be shorter than bonus_interval_seconds"
            )
        for track in UpgradeTrack:
            if self.growth_factors.get(track, 0) < 1:
                raise ConfigurationError(
                    f"upgrades.{track.value}.growth", "must be at least 1.0"
                )
            if self.upgrade_effects.get(track, 0) <= 0:
                raise ConfigurationError(
                    f"upgrades.{track.value}.effect", "must be positive"
                )
            if self.starting_costs.get(track, 0) <= 0:
                raise ConfigurationError(
                    f"upgrades.{track.value}.starting_cost", "must be positive"
                )

    def new_game_state(self) -> GameState:
        """Fresh state built from the starting values."""
        return GameState(
            currency=self.starting_currency,
            battery_current=self.starting_battery_capacity,
            battery_capacity=self.starting_battery_capacity,
            click_level=self.starting_click_level,
            charge_level=self.starting_charge_level,
            upgrade_costs=dict(self.starting_costs),
            owned_badges={self.default_badge_id},
            selected_badge_id=self.default_badge_id,
            theme=Theme.LIGHT,
            default_badge_id=self.default_badge_id,
        )

    @classmethod
    def from_config_manager(cls) -> "EconomySettings":
        """
        Build settings from `ConfigManager`, falling back to class defaults
        for anything the YAML does not set.

        Raises
        ------
        ConfigurationError
            If a configured value is out of range or of the wrong type.
        """
        from clicker.core.config.manager import ConfigManager

        base = cls()

        def _get(key: str, default: Any, kind: type) -> Any:
            raw = ConfigManager.get(key, default)
            try:
                return kind(raw)
            except (TypeError, ValueError):
                raise ConfigurationError(key, f"expected {kind.__name__}, got {raw!r}") from None

        growth: Dict[UpgradeTrack, float] = {}
        effects: Dict[UpgradeTrack, int] = {}
        costs: Dict[UpgradeTrack, int] = {}
        for track in UpgradeTrack:
            prefix = f"economy.upgrades.{track.value}"
            growth[track] = _get(f"{prefix}.growth", base.growth_factors[track], float)
            effects[track] = _get(f"{prefix}.effect", base.upgrade_effects[track], int)
            costs[track] = _get(f"{prefix}.starting_cost", base.starting_costs[track], int)

        return cls(
            regen_interval_seconds=_get(
                "economy.scheduler.regen_interval_seconds", base.regen_interval_seconds, float
            ),
            bonus_interval_seconds=_get(
                "economy.scheduler.bonus_interval_seconds", base.bonus_interval_seconds, float
            ),
            bonus_window_seconds=_get(
                "economy.scheduler.bonus_window_seconds", base.bonus_window_seconds, float
            ),
            bonus_multiplier=_get("economy.bonus.multiplier", base.bonus_multiplier, int),
            growth_factors=growth,
            upgrade_effects=effects,
            starting_currency=_get("economy.start.currency", base.starting_currency, int),
            starting_battery_capacity=_get(
                "economy.start.battery_capacity", base.starting_battery_capacity, int
            ),
            starting_click_level=_get(
                "economy.start.click_level", base.starting_click_level, int
            ),
            starting_charge_level=_get(
                "economy.start.charge_level", base.starting_charge_level, int
            ),
            starting_costs=costs,
            default_badge_id=_get("badges.default_badge_id", base.default_badge_id, str),
        )
