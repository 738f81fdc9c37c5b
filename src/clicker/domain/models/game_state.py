"""
Game State Domain Model.

Purpose
-------
Rich domain model for the single game aggregate: currency, the battery that
gates clicking, levels, upgrade prices, badge ownership and the cosmetic
theme. All mutation goes through methods here so invariants hold after
every operation.

Responsibilities
----------------
- Enforce the economy invariants:
  - currency is never negative and saturates at `MAX_CURRENCY`
  - 0 <= battery.current <= battery.capacity
  - click and charge levels are at least 1
  - upgrade costs are positive and never decrease
  - the default badge is always owned and the selected badge is owned
- Provide atomic spend (all or nothing)
- Emit domain events for every committed change
- Produce immutable snapshots for persistence and comparison

Non-Responsibilities
--------------------
- Pricing rules and cost growth (UpgradeService / formulas)
- Catalog lookups and rarity resolution (BadgeService)
- Timers (ResourceScheduler)
- Serialization format (persistence codec)

Domain Events
-------------
- economy.income_applied / economy.spent
- battery.drained / battery.recharged / battery.capacity_changed
- level.click_changed / level.charge_changed
- upgrade.cost_changed
- badge.owned / badge.selected
- theme.toggled
- state.restored

Usage Example
-------------
>>> state = GameState.default()
>>> state.apply_income(250)
250
>>> state.spend(100, item="upgrade:click")
>>> state.currency
150
>>> [e.event_name for e in state.clear_domain_events()]
['economy.income_applied', 'economy.spent']
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from clicker.domain.models.badge import DEFAULT_BADGE_ID
from clicker.domain.models.base import (
    AggregateRoot,
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
)
from clicker.modules.shared.exceptions import InsufficientFundsError

# Signed 64-bit ceiling; realistic play never reaches it.
MAX_CURRENCY = 2**63 - 1

DEFAULT_CURRENCY = 0
DEFAULT_BATTERY_CAPACITY = 150
DEFAULT_CLICK_LEVEL = 1
DEFAULT_CHARGE_LEVEL = 10


# ============================================================================
# ENUMS
# ============================================================================


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"

    def toggled(self) -> "Theme":
        return Theme.DARK if self is Theme.LIGHT else Theme.LIGHT


class UpgradeTrack(str, Enum):
    """The three independent purchasable progression lines."""

    CLICK = "click"
    BATTERY = "battery"
    CHARGE = "charge"

    @classmethod
    def parse(cls, raw: "UpgradeTrack | str") -> "UpgradeTrack":
        """
        Raises
        ------
        DomainValidationError
            If `raw` names no track.
        """
        if isinstance(raw, UpgradeTrack):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise DomainValidationError(
                f"Unknown upgrade track: {raw!r}", field="track"
            ) from None


DEFAULT_UPGRADE_COSTS: Dict[UpgradeTrack, int] = {
    UpgradeTrack.CLICK: 100,
    UpgradeTrack.BATTERY: 200,
    UpgradeTrack.CHARGE: 150,
}


# ============================================================================
# VALUE OBJECTS
# ============================================================================


@dataclass(frozen=True)
class Battery:
    """
    Immutable battery reading.

    Attributes
    ----------
    current : int
        Charge available for clicking, in [0, capacity].
    capacity : int
        Maximum charge, always positive.
    """

    current: int
    capacity: int

    def __post_init__(self) -> None:
        validate_non_negative(self.current, "battery.current")
        validate_positive(self.capacity, "battery.capacity")
        if self.current > self.capacity:
            raise DomainValidationError(
                f"battery.current ({self.current}) exceeds capacity ({self.capacity})",
                field="battery.current",
            )

    @property
    def is_empty(self) -> bool:
        return self.current == 0

    @property
    def is_full(self) -> bool:
        return self.current == self.capacity

    @property
    def percentage(self) -> float:
        """Charge as a percentage, clamped to [0, 100]."""
        return max(0.0, min(100.0, self.current / self.capacity * 100))

    def drained(self, amount: int) -> Battery:
        return Battery(current=max(0, self.current - amount), capacity=self.capacity)

    def recharged(self, amount: int) -> Battery:
        return Battery(current=min(self.capacity, self.current + amount), capacity=self.capacity)

    def with_capacity(self, capacity: int) -> Battery:
        """Resize; current is clamped down if it no longer fits."""
        return Battery(current=min(self.current, capacity), capacity=capacity)


@dataclass(frozen=True)
class GameSnapshot:
    """
    Immutable, field-for-field copy of a game state.

    Two snapshots are equal exactly when every persisted field matches,
    which is what save/load round trips are checked against.
    """

    currency: int
    battery_current: int
    battery_capacity: int
    click_level: int
    charge_level: int
    click_cost: int
    battery_cost: int
    charge_cost: int
    theme: Theme
    selected_badge_id: str
    owned_badges: FrozenSet[str]

    def upgrade_cost(self, track: UpgradeTrack) -> int:
        return {
            UpgradeTrack.CLICK: self.click_cost,
            UpgradeTrack.BATTERY: self.battery_cost,
            UpgradeTrack.CHARGE: self.charge_cost,
        }[track]


# ============================================================================
# GAME STATE AGGREGATE ROOT
# ============================================================================


class GameState(AggregateRoot):
    """
    Game aggregate root.

    Business Rules
    --------------
    - Spending is atomic: it debits the whole amount or raises.
    - Income saturates at `MAX_CURRENCY` instead of overflowing.
    - Battery never leaves [0, capacity]; shrinking capacity clamps it.
    - A badge must be owned before it can be selected.
    - Upgrade costs only grow.
    """

    def __init__(
        self,
        *,
        currency: int = DEFAULT_CURRENCY,
        battery_current: int = DEFAULT_BATTERY_CAPACITY,
        battery_capacity: int = DEFAULT_BATTERY_CAPACITY,
        click_level: int = DEFAULT_CLICK_LEVEL,
        charge_level: int = DEFAULT_CHARGE_LEVEL,
        upgrade_costs: Optional[Mapping[UpgradeTrack, int]] = None,
        owned_badges: Optional[Iterable[str]] = None,
        selected_badge_id: Optional[str] = None,
        theme: Theme = Theme.LIGHT,
        default_badge_id: str = DEFAULT_BADGE_ID,
        state_id: str = "local",
    ) -> None:
        super().__init__(state_id)

        validate_not_empty(default_badge_id, "default_badge_id")
        validate_non_negative(currency, "currency")
        if currency > MAX_CURRENCY:
            raise DomainValidationError(
                f"currency exceeds maximum {MAX_CURRENCY}", field="currency"
            )
        validate_positive(click_level, "click_level")
        validate_positive(charge_level, "charge_level")

        costs = dict(DEFAULT_UPGRADE_COSTS if upgrade_costs is None else upgrade_costs)
        for track in UpgradeTrack:
            if track not in costs:
                raise DomainValidationError(
                    f"missing upgrade cost for {track.value}", field="upgrade_costs"
                )
            validate_positive(costs[track], f"upgrade_costs.{track.value}")

        owned = frozenset(owned_badges if owned_badges is not None else {default_badge_id})
        if default_badge_id not in owned:
            raise DomainValidationError(
                f"default badge '{default_badge_id}' must be owned",
                field="owned_badges",
            )
        selected = selected_badge_id if selected_badge_id is not None else default_badge_id
        if selected not in owned:
            raise DomainValidationError(
                f"selected badge '{selected}' is not owned",
                field="selected_badge_id",
            )

        self._currency = currency
        self._battery = Battery(current=battery_current, capacity=battery_capacity)
        self._click_level = click_level
        self._charge_level = charge_level
        self._upgrade_costs: Dict[UpgradeTrack, int] = {t: costs[t] for t in UpgradeTrack}
        self._owned_badges: set[str] = set(owned)
        self._selected_badge_id = selected
        self._theme = Theme(theme)
        self._default_badge_id = default_badge_id

    # ========================================================================
    # FACTORIES
    # ========================================================================

    @classmethod
    def default(cls, default_badge_id: str = DEFAULT_BADGE_ID) -> GameState:
        """Fresh state with the documented starting values."""
        return cls(default_badge_id=default_badge_id)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: GameSnapshot,
        default_badge_id: str = DEFAULT_BADGE_ID,
    ) -> GameState:
        """
        Rebuild a state from a snapshot.

        Raises
        ------
        DomainValidationError
            If the snapshot violates any aggregate invariant.
        """
        return cls(
            currency=snapshot.currency,
            battery_current=snapshot.battery_current,
            battery_capacity=snapshot.battery_capacity,
            click_level=snapshot.click_level,
            charge_level=snapshot.charge_level,
            upgrade_costs={
                UpgradeTrack.CLICK: snapshot.click_cost,
                UpgradeTrack.BATTERY: snapshot.battery_cost,
                UpgradeTrack.CHARGE: snapshot.charge_cost,
            },
            owned_badges=snapshot.owned_badges,
            selected_badge_id=snapshot.selected_badge_id,
            theme=snapshot.theme,
            default_badge_id=default_badge_id,
        )

    # ========================================================================
    # READ ACCESSORS
    # ========================================================================

    @property
    def currency(self) -> int:
        return self._currency

    @property
    def battery(self) -> Battery:
        return self._battery

    @property
    def click_level(self) -> int:
        return self._click_level

    @property
    def charge_level(self) -> int:
        return self._charge_level

    @property
    def upgrade_costs(self) -> Dict[UpgradeTrack, int]:
        return dict(self._upgrade_costs)

    def upgrade_cost(self, track: UpgradeTrack) -> int:
        return self._upgrade_costs[track]

    @property
    def owned_badges(self) -> FrozenSet[str]:
        return frozenset(self._owned_badges)

    @property
    def selected_badge_id(self) -> str:
        return self._selected_badge_id

    @property
    def theme(self) -> Theme:
        return self._theme

    @property
    def default_badge_id(self) -> str:
        return self._default_badge_id

    def owns(self, badge_id: str) -> bool:
        return badge_id in self._owned_badges

    def can_afford(self, amount: int) -> bool:
        return self._currency >= amount

    # ========================================================================
    # BUSINESS LOGIC - CURRENCY
    # ========================================================================

    def apply_income(self, amount: int) -> int:
        """
        Credit currency, saturating at `MAX_CURRENCY`.

        Returns
        -------
        int
            The amount actually credited (less than `amount` only at the cap).

        Raises
        ------
        DomainValidationError
            If amount is negative
        """
        validate_non_negative(amount, "amount")
        credited = min(amount, MAX_CURRENCY - self._currency)
        if credited == 0:
            return 0

        self._currency += credited
        self.add_domain_event(
            "economy.income_applied",
            {"amount": credited, "new_total": self._currency},
        )
        return credited

    def spend(self, amount: int, item: Optional[str] = None) -> None:
        """
        Debit currency atomically.

        Raises
        ------
        InsufficientFundsError
            If currency is below `amount`; nothing changes.
        DomainValidationError
            If amount is negative
        """
        validate_non_negative(amount, "amount")
        if self._currency < amount:
            raise InsufficientFundsError(required=amount, current=self._currency, item=item)
        if amount == 0:
            return

        self._currency -= amount
        self.add_domain_event(
            "economy.spent",
            {"amount": amount, "item": item, "new_total": self._currency},
        )

    # ========================================================================
    # BUSINESS LOGIC - BATTERY
    # ========================================================================

    def drain_battery(self, amount: int) -> int:
        """Remove up to `amount` charge; returns how much was removed."""
        validate_non_negative(amount, "amount")
        before = self._battery.current
        self._battery = self._battery.drained(amount)
        drained = before - self._battery.current
        if drained:
            self.add_domain_event(
                "battery.drained",
                {"amount": drained, "current": self._battery.current},
            )
        return drained

    def recharge_battery(self, amount: int) -> int:
        """Add up to `amount` charge without exceeding capacity."""
        validate_non_negative(amount, "amount")
        before = self._battery.current
        self._battery = self._battery.recharged(amount)
        gained = self._battery.current - before
        if gained:
            self.add_domain_event(
                "battery.recharged",
                {"amount": gained, "current": self._battery.current},
            )
        return gained

    def set_battery_capacity(self, capacity: int) -> None:
        """Resize the battery; a smaller capacity clamps the current charge."""
        validate_positive(capacity, "capacity")
        old = self._battery
        self._battery = old.with_capacity(capacity)
        self.add_domain_event(
            "battery.capacity_changed",
            {
                "old_capacity": old.capacity,
                "new_capacity": capacity,
                "current": self._battery.current,
                "clamped": self._battery.current < old.current,
            },
        )

    # ========================================================================
    # BUSINESS LOGIC - LEVELS & COSTS
    # ========================================================================

    def raise_click_level(self, by: int = 1) -> None:
        validate_positive(by, "by")
        self._click_level += by
        self.add_domain_event("level.click_changed", {"new_level": self._click_level})

    def raise_charge_level(self, by: int = 1) -> None:
        validate_positive(by, "by")
        self._charge_level += by
        self.add_domain_event("level.charge_changed", {"new_level": self._charge_level})

    def set_upgrade_cost(self, track: UpgradeTrack, cost: int) -> None:
        """
        Raises
        ------
        DomainValidationError
            If `cost` is not positive or lower than the current cost.
        """
        validate_positive(cost, f"upgrade_costs.{track.value}")
        old = self._upgrade_costs[track]
        if cost < old:
            raise DomainValidationError(
                f"upgrade cost for {track.value} cannot decrease ({old} -> {cost})",
                field=f"upgrade_costs.{track.value}",
            )
        self._upgrade_costs[track] = cost
        self.add_domain_event(
            "upgrade.cost_changed",
            {"track": track.value, "old_cost": old, "new_cost": cost},
        )

    # ========================================================================
    # BUSINESS LOGIC - BADGES & THEME
    # ========================================================================

    def own_badge(self, badge_id: str) -> bool:
        """Mark a badge owned; returns False if it already was."""
        validate_not_empty(badge_id, "badge_id")
        if badge_id in self._owned_badges:
            return False
        self._owned_badges.add(badge_id)
        self.add_domain_event("badge.owned", {"badge_id": badge_id})
        return True

    def select_badge(self, badge_id: str) -> None:
        """
        Raises
        ------
        DomainValidationError
            If the badge is not owned.
        """
        if badge_id not in self._owned_badges:
            raise DomainValidationError(
                f"cannot select unowned badge '{badge_id}'",
                field="selected_badge_id",
            )
        if badge_id == self._selected_badge_id:
            return
        previous = self._selected_badge_id
        self._selected_badge_id = badge_id
        self.add_domain_event(
            "badge.selected",
            {"badge_id": badge_id, "previous_badge_id": previous},
        )

    def toggle_theme(self) -> Theme:
        self._theme = self._theme.toggled()
        self.add_domain_event("theme.toggled", {"theme": self._theme.value})
        return self._theme

    # ========================================================================
    # SNAPSHOTS
    # ========================================================================

    def to_snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            currency=self._currency,
            battery_current=self._battery.current,
            battery_capacity=self._battery.capacity,
            click_level=self._click_level,
            charge_level=self._charge_level,
            click_cost=self._upgrade_costs[UpgradeTrack.CLICK],
            battery_cost=self._upgrade_costs[UpgradeTrack.BATTERY],
            charge_cost=self._upgrade_costs[UpgradeTrack.CHARGE],
            theme=self._theme,
            selected_badge_id=self._selected_badge_id,
            owned_badges=frozenset(self._owned_badges),
        )

    def restore(self, other: GameState) -> None:
        """
        Replace every field with those of `other`, keeping this identity.

        Used for explicit resets, so handles held by the scheduler and
        services keep pointing at the live aggregate.
        """
        self._currency = other._currency
        self._battery = other._battery
        self._click_level = other._click_level
        self._charge_level = other._charge_level
        self._upgrade_costs = dict(other._upgrade_costs)
        self._owned_badges = set(other._owned_badges)
        self._selected_badge_id = other._selected_badge_id
        self._theme = other._theme
        self._default_badge_id = other._default_badge_id
        self.add_domain_event("state.restored", {"currency": self._currency})

    def __repr__(self) -> str:
        return (
            f"GameState(currency={self._currency}, battery={self._battery.current}/"
            f"{self._battery.capacity}, click_level={self._click_level}, "
            f"charge_level={self._charge_level}, selected={self._selected_badge_id!r})"
        )
