"""
GameSession: the explicit context object for one running game.

Purpose
-------
Own the live `GameState`, the badge catalog, the resource timers and the
persistence wiring, and expose the player's actions and read-only views.

Responsibilities
----------------
- Translate player actions into service calls and report an `ActionResult`
  instead of raising for expected rejections
- Publish the aggregate's domain events and a ``session.committed`` event
  (carrying a snapshot) after every mutation
- Drive battery regeneration and bonus events through `ResourceScheduler`
- Load the badge catalog in the background, using the fallback badge until
  it arrives

Non-Responsibilities
--------------------
- Game rules (economy, upgrade, badge, resource services)
- Save encoding and storage (persistence gateway)
- Presentation (Discord cog)

Design Notes
------------
- Every action mutates state synchronously before its first await, so no
  two mutations interleave on the event loop.
- Rejected actions leave the state untouched and publish nothing.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from clicker.core.event.bus import EventBus
from clicker.core.logging.logger import LogContext, get_logger
from clicker.domain.models.badge import Badge
from clicker.domain.models.base import DomainValidationError
from clicker.domain.models.game_state import GameSnapshot, GameState, Theme, UpgradeTrack
from clicker.modules.badge.catalog import BadgeCatalog, CatalogSource, load_catalog
from clicker.modules.badge.service import BadgeListing, BadgeService
from clicker.modules.economy.service import EconomyService
from clicker.modules.persistence.gateway import COMMITTED_EVENT, PersistenceGateway
from clicker.modules.resource.clock import Clock
from clicker.modules.resource.scheduler import ResourceScheduler
from clicker.modules.resource.service import BonusWindow, ResourceService
from clicker.modules.shared.exceptions import (
    BatteryEmptyError,
    InsufficientFundsError,
    UnknownBadgeError,
)
from clicker.modules.shared.settings import EconomySettings
from clicker.modules.upgrade.service import UpgradeService

logger = get_logger(__name__)

REGEN_TASK = "regen"
BONUS_TASK = "bonus"
BONUS_EXPIRY_TASK = "bonus-expiry"


class Outcome(str, Enum):
    OK = "ok"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_BADGE = "unknown_badge"
    BATTERY_EMPTY = "battery_empty"
    BONUS_UNAVAILABLE = "bonus_unavailable"
    INVALID_TRACK = "invalid_track"


@dataclass(frozen=True)
class ActionResult:
    outcome: Outcome
    currency_delta: int = 0
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK


class GameSession:
    """
    Examples
    --------
    >>> session = await GameSession.create(EconomySettings(), gateway=gateway)
    >>> session.start()
    >>> result = await session.click()
    >>> result.currency_delta
    1
    >>> await session.stop()
    """

    def __init__(
        self,
        state: GameState,
        settings: Optional[EconomySettings] = None,
        *,
        catalog: Optional[BadgeCatalog] = None,
        catalog_source: Optional[CatalogSource] = None,
        scheduler: Optional[ResourceScheduler] = None,
        clock: Optional[Clock] = None,
        event_bus: Optional[EventBus] = None,
        gateway: Optional[PersistenceGateway] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.state = state
        self.settings = settings or EconomySettings()
        self.session_id = session_id or uuid.uuid4().hex[:8]

        self.catalog = catalog if catalog is not None else BadgeCatalog.fallback()
        self._catalog_loaded = catalog is not None
        self.catalog_source = catalog_source
        self._catalog_task: Optional[asyncio.Task[BadgeCatalog]] = None

        self.scheduler = scheduler or ResourceScheduler(clock)
        self.event_bus = event_bus or EventBus()
        self.bonus = BonusWindow(self.settings.bonus_multiplier)

        self.gateway = gateway
        if gateway is not None:
            gateway.attach(self.event_bus)

        self._started = False

    @classmethod
    async def create(
        cls,
        settings: Optional[EconomySettings] = None,
        *,
        gateway: Optional[PersistenceGateway] = None,
        **kwargs: Any,
    ) -> GameSession:
        """Build a session from the saved game in `gateway`, or a fresh one."""
        settings = settings or EconomySettings()
        if gateway is None:
            state = settings.new_game_state()
        else:
            if gateway.default_factory is None:
                gateway.default_factory = settings.new_game_state
            if gateway.default_badge_id is None:
                gateway.default_badge_id = settings.default_badge_id
            state = await gateway.load()
        return cls(state, settings, gateway=gateway, **kwargs)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the catalog fetch and the regeneration and bonus timers."""
        if self._started:
            return
        self._started = True

        if self.catalog_source is not None and not self._catalog_loaded:
            self._catalog_task = asyncio.get_running_loop().create_task(
                self.refresh_catalog(), name=f"catalog-load-{self.session_id}"
            )

        self.scheduler.every(REGEN_TASK, self.settings.regen_interval_seconds, self._on_regen_tick)
        self.scheduler.every(BONUS_TASK, self.settings.bonus_interval_seconds, self._on_bonus_tick)
        self.scheduler.start()
        with LogContext(session_id=self.session_id, operation="start"):
            logger.info("Game session started", extra={"state": repr(self.state)})

    async def stop(self) -> None:
        """Cancel every timer and the catalog fetch, then flush pending saves."""
        try:
            await self.scheduler.stop()
            if self._catalog_task is not None:
                self._catalog_task.cancel()
                try:
                    await self._catalog_task
                except asyncio.CancelledError:
                    pass
                except Exception as exc:
                    logger.error(
                        "Catalog task failed",
                        extra={"error": str(exc), "error_type": type(exc).__name__},
                        exc_info=True,
                    )
                self._catalog_task = None
            self.bonus.reset()
            await self.event_bus.drain()
        finally:
            if self.gateway is not None:
                await self.gateway.close()
            self._started = False
        with LogContext(session_id=self.session_id, operation="stop"):
            logger.info("Game session stopped")

    async def refresh_catalog(self) -> BadgeCatalog:
        """Fetch the catalog from `catalog_source`; falls back, never raises."""
        if self.catalog_source is None:
            return self.catalog
        catalog = await load_catalog(self.catalog_source)
        self.catalog = catalog
        self._catalog_loaded = True
        await self.event_bus.publish(
            "catalog.loaded",
            {
                "session_id": self.session_id,
                "badge_count": len(catalog),
                "fallback": catalog.is_fallback,
            },
        )
        return catalog

    # ------------------------------------------------------------------ #
    # Commit
    # ------------------------------------------------------------------ #

    async def _commit(self, action: str) -> None:
        events = self.state.clear_domain_events()
        if not events:
            return
        for event in events:
            await self.event_bus.publish(
                event.event_name,
                {"session_id": self.session_id, **event.payload},
            )
        await self.event_bus.publish(
            COMMITTED_EVENT,
            {"session_id": self.session_id, "action": action, "snapshot": self.snapshot()},
        )

    # ------------------------------------------------------------------ #
    # Actions
    # ------------------------------------------------------------------ #

    async def click(self) -> ActionResult:
        async with LogContext(session_id=self.session_id, action="click"):
            try:
                result = EconomyService.click(self.state, self.rarity_multiplier)
            except BatteryEmptyError:
                return ActionResult(Outcome.BATTERY_EMPTY)
            await self._commit("click")
            return ActionResult(
                Outcome.OK,
                currency_delta=result.income,
                details={
                    "battery_spent": result.battery_spent,
                    "multiplier": result.multiplier,
                    "partial": result.partial,
                },
            )

    async def purchase_upgrade(self, track: UpgradeTrack | str) -> ActionResult:
        async with LogContext(session_id=self.session_id, action="upgrade"):
            try:
                receipt = UpgradeService.purchase(self.state, track, self.settings)
            except DomainValidationError as exc:
                return ActionResult(Outcome.INVALID_TRACK, details={"track": str(track), "error": str(exc)})
            except InsufficientFundsError as exc:
                return ActionResult(
                    Outcome.INSUFFICIENT_FUNDS,
                    details={"required": exc.required, "current": exc.current},
                )
            await self._commit("upgrade")
            return ActionResult(
                Outcome.OK,
                currency_delta=-receipt.price_paid,
                details={
                    "track": receipt.track.value,
                    "new_level": receipt.new_level,
                    "next_cost": receipt.next_cost,
                },
            )

    async def buy_or_select_badge(self, badge_id: str) -> ActionResult:
        async with LogContext(session_id=self.session_id, action="badge"):
            try:
                selection = BadgeService.buy_or_select(self.state, self.catalog, badge_id)
            except UnknownBadgeError:
                return ActionResult(Outcome.UNKNOWN_BADGE, details={"badge_id": badge_id})
            except InsufficientFundsError as exc:
                return ActionResult(
                    Outcome.INSUFFICIENT_FUNDS,
                    details={"badge_id": badge_id, "required": exc.required, "current": exc.current},
                )
            await self._commit("badge")
            return ActionResult(
                Outcome.OK,
                currency_delta=-selection.price_paid,
                details={
                    "badge_id": selection.badge.id,
                    "purchased": selection.purchased,
                    "multiplier": selection.badge.multiplier,
                },
            )

    async def claim_bonus(self) -> ActionResult:
        async with LogContext(session_id=self.session_id, action="bonus"):
            claim = self.bonus.claim(self.state)
            if not claim.claimed:
                return ActionResult(Outcome.BONUS_UNAVAILABLE)
            self.scheduler.cancel(BONUS_EXPIRY_TASK)
            await self._commit("bonus")
            return ActionResult(Outcome.OK, currency_delta=claim.reward)

    async def toggle_theme(self) -> ActionResult:
        async with LogContext(session_id=self.session_id, action="theme"):
            theme = self.state.toggle_theme()
            await self._commit("theme")
            return ActionResult(Outcome.OK, details={"theme": theme.value})

    async def reset(self) -> ActionResult:
        """Replace the game with a fresh default state."""
        async with LogContext(session_id=self.session_id, action="reset"):
            before = self.state.currency
            self.state.restore(self.settings.new_game_state())
            self.bonus.reset()
            self.scheduler.cancel(BONUS_EXPIRY_TASK)
            await self._commit("reset")
            logger.info("Game reset to defaults", extra={"currency_before": before})
            return ActionResult(Outcome.OK, currency_delta=self.state.currency - before)

    # ------------------------------------------------------------------ #
    # Timers
    # ------------------------------------------------------------------ #

    async def _on_regen_tick(self) -> None:
        if ResourceService.regenerate(self.state):
            await self._commit("regen")

    async def _on_bonus_tick(self) -> None:
        self.bonus.open(self.scheduler.clock.now())
        self.scheduler.once(BONUS_EXPIRY_TASK, self.settings.bonus_window_seconds, self._on_bonus_expired)
        await self.event_bus.publish("bonus.available", {"session_id": self.session_id})

    async def _on_bonus_expired(self) -> None:
        if self.bonus.expire():
            await self.event_bus.publish("bonus.expired", {"session_id": self.session_id})

    # ------------------------------------------------------------------ #
    # Read accessors
    # ------------------------------------------------------------------ #

    @property
    def currency(self) -> int:
        return self.state.currency

    @property
    def battery_current(self) -> int:
        return self.state.battery.current

    @property
    def battery_capacity(self) -> int:
        return self.state.battery.capacity

    @property
    def battery_percentage(self) -> float:
        return self.state.battery.percentage

    @property
    def click_level(self) -> int:
        return self.state.click_level

    @property
    def charge_level(self) -> int:
        return self.state.charge_level

    def upgrade_cost(self, track: UpgradeTrack | str) -> int:
        return self.state.upgrade_cost(UpgradeTrack.parse(track))

    def can_afford_upgrade(self, track: UpgradeTrack | str) -> bool:
        return UpgradeService.can_afford(self.state, UpgradeTrack.parse(track))

    @property
    def owned_badges(self) -> frozenset[str]:
        return self.state.owned_badges

    @property
    def selected_badge_id(self) -> str:
        return self.state.selected_badge_id

    @property
    def theme(self) -> Theme:
        return self.state.theme

    @property
    def bonus_available(self) -> bool:
        return self.bonus.available

    @property
    def current_badge(self) -> Badge:
        return BadgeService.current_badge(self.state, self.catalog)

    @property
    def rarity_multiplier(self) -> int:
        return BadgeService.multiplier(self.state, self.catalog)

    @property
    def income_per_click(self) -> int:
        return EconomyService.income_per_click(self.state, self.rarity_multiplier)

    @property
    def can_click(self) -> bool:
        return EconomyService.can_click(self.state)

    @property
    def badges(self) -> List[BadgeListing]:
        return BadgeService.listings(self.state, self.catalog)

    @property
    def catalog_loaded(self) -> bool:
        return self._catalog_loaded

    def snapshot(self) -> GameSnapshot:
        return self.state.to_snapshot()
