"""
Pytest Configuration and Fixtures for the Brainrot Clicker Tests
================================================================

Purpose
-------
Centralized fixtures for the clicker test suite: domain objects, catalogs,
a deterministic clock, save slots and fully wired sessions.

Architecture Notes
------------------
- Unit tests use in-memory slots and a ManualClock (fast, isolated)
- Integration tests use a temporary SQLite file through aiosqlite
- Service metrics are class-level, so they are reset around every test
"""

from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from clicker.core.event.bus import EventBus
from clicker.domain.models import Badge, GameState, Rarity
from clicker.modules.badge.catalog import BadgeCatalog
from clicker.modules.economy.service import EconomyService
from clicker.modules.persistence.gateway import PersistenceGateway
from clicker.modules.persistence.slots import MemorySaveSlot
from clicker.modules.resource.clock import ManualClock
from clicker.modules.resource.scheduler import ResourceScheduler
from clicker.modules.resource.service import ResourceService
from clicker.modules.session.engine import GameSession
from clicker.modules.shared.settings import EconomySettings
from clicker.modules.upgrade.service import UpgradeService


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    os.environ.setdefault("ENVIRONMENT", "testing")
    os.environ.setdefault("LOG_LEVEL", "DEBUG")


@pytest.fixture(autouse=True)
def reset_service_metrics():
    EconomyService.reset_metrics()
    UpgradeService.reset_metrics()
    ResourceService.reset_metrics()
    yield
    EconomyService.reset_metrics()
    UpgradeService.reset_metrics()
    ResourceService.reset_metrics()


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> EconomySettings:
    return EconomySettings()


@pytest.fixture
def state() -> GameState:
    """Fresh default state: 0 coins, battery 150/150, levels 1 and 10."""
    return GameState.default()


@pytest.fixture
def catalog_document() -> dict:
    """Catalog in the wire format the game downloads."""
    return {
        "badges": [
            {
                "id": "tripi",
                "name": "Tripi Tropi",
                "emoji": "/brainrot/Tripi_Tropi_Original.webp",
                "cost": 0,
                "description": "Default badge",
                "rarity": "common",
            },
            {"id": "tung", "name": "Tung Tung", "emoji": "/t.webp", "cost": 500, "rarity": "uncommon"},
            {"id": "free-rare", "name": "Gift", "emoji": "/g.webp", "cost": 0, "rarity": "rare"},
            {"id": "legend", "name": "Tralalero", "emoji": "/l.webp", "cost": 1000, "rarity": "legendary"},
            {"id": "saturno", "name": "Saturnita", "emoji": "/s.webp", "cost": 5000, "rarity": "god brainrot"},
        ]
    }


@pytest.fixture
def catalog() -> BadgeCatalog:
    return BadgeCatalog.from_badges(
        [
            Badge(id="tripi", name="Tripi Tropi", cost=0, rarity=Rarity.COMMON),
            Badge(id="tung", name="Tung Tung", cost=500, rarity=Rarity.UNCOMMON),
            Badge(id="free-rare", name="Gift", cost=0, rarity=Rarity.RARE),
            Badge(id="legend", name="Tralalero", cost=1000, rarity=Rarity.LEGENDARY),
        ]
    )


# ============================================================================
# INFRASTRUCTURE FIXTURES
# ============================================================================


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(manual_clock: ManualClock) -> ResourceScheduler:
    return ResourceScheduler(manual_clock)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def memory_slot() -> MemorySaveSlot:
    return MemorySaveSlot("brainrotGame")


@pytest.fixture
def gateway(memory_slot: MemorySaveSlot) -> PersistenceGateway:
    return PersistenceGateway(memory_slot)


# ============================================================================
# SESSION FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def session(
    settings: EconomySettings,
    catalog: BadgeCatalog,
    scheduler: ResourceScheduler,
    event_bus: EventBus,
    gateway: PersistenceGateway,
) -> AsyncGenerator[GameSession, None]:
    """
    Session with a loaded catalog, manual clock and in-memory save slot.

    Timers are not started; tests that need them call `session.start()`
    and drive time with `manual_clock.advance()` + `scheduler.run_pending()`.
    """
    game = await GameSession.create(
        settings,
        gateway=gateway,
        catalog=catalog,
        scheduler=scheduler,
        event_bus=event_bus,
        session_id="test",
    )
    yield game
    await game.stop()
