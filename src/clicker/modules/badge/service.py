"""
Badge ownership, selection and rarity multiplier resolution.

Each badge moves one way, from locked to owned. `buy_or_select` runs the
whole purchase-then-select flow in a single call:

1. Unknown id -> `UnknownBadgeError`, nothing changes.
2. Owned or free -> select it (free badges join the owned set).
3. Affordable -> debit the cost, own it, select it.
4. Otherwise -> `InsufficientFundsError`, nothing changes.

Repeating the call on an owned badge only re-selects it; it never charges
twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from clicker.core.logging.logger import get_logger
from clicker.domain.models.badge import DEFAULT_BADGE, Badge
from clicker.domain.models.game_state import GameState
from clicker.modules.badge.catalog import BadgeCatalog
from clicker.modules.shared.exceptions import UnknownBadgeError

logger = get_logger(__name__)


@dataclass(frozen=True)
class BadgeSelection:
    badge: Badge
    purchased: bool
    price_paid: int


@dataclass(frozen=True)
class BadgeListing:
    """Catalog entry annotated with the player's status for display."""

    badge: Badge
    owned: bool
    selected: bool
    affordable: bool

    @property
    def selectable(self) -> bool:
        return self.owned or self.badge.is_free or self.affordable


class BadgeService:

    @staticmethod
    def buy_or_select(state: GameState, catalog: BadgeCatalog, badge_id: str) -> BadgeSelection:
        """
        Buy (if needed) and select a badge.

        Raises:
            UnknownBadgeError: `badge_id` is not in the catalog.
            InsufficientFundsError: Locked, priced badge the player cannot afford.
        """
        badge = catalog.get(badge_id)
        if badge is None:
            raise UnknownBadgeError(badge_id)

        purchased = False
        price_paid = 0
        if not state.owns(badge.id):
            # spend() raises before any change when funds are short
            state.spend(badge.cost, item=f"badge:{badge.id}")
            state.own_badge(badge.id)
            purchased = not badge.is_free
            price_paid = badge.cost

        state.select_badge(badge.id)

        if purchased:
            logger.info(
                "Badge purchased",
                extra={
                    "badge_id": badge.id,
                    "rarity": badge.rarity_label,
                    "price_paid": price_paid,
                },
            )
        return BadgeSelection(badge=badge, purchased=purchased, price_paid=price_paid)

    @staticmethod
    def current_badge(state: GameState, catalog: BadgeCatalog) -> Badge:
        """
        Active badge: the selected one, else the first catalog entry, else
        the built-in default. Never raises.
        """
        return catalog.get(state.selected_badge_id) or catalog.first() or DEFAULT_BADGE

    @staticmethod
    def multiplier(state: GameState, catalog: BadgeCatalog) -> int:
        return BadgeService.current_badge(state, catalog).multiplier

    @staticmethod
    def listings(state: GameState, catalog: BadgeCatalog) -> List[BadgeListing]:
        current = BadgeService.current_badge(state, catalog)
        return [
            BadgeListing(
                badge=badge,
                owned=state.owns(badge.id),
                selected=badge.id == current.id,
                affordable=state.can_afford(badge.cost),
            )
            for badge in catalog
        ]
