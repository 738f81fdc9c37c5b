"""
Brainrot Clicker - Application Entry Point
==========================================

Bootstrap
---------
- Config validation
- Logging
- ConfigManager initialization (YAML tunables)
- Save slot backend (memory, file, redis or database)
- Game session (saved game, badge catalog, timers)
- Bot lifecycle management
- Graceful shutdown
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Optional

from clicker.core.config.config import Config
from clicker.core.config.manager import ConfigManager
from clicker.core.database.service import DatabaseService
from clicker.core.logging.logger import get_logger, setup_logging, shutdown_logging
from clicker.core.redis.service import RedisService
from clicker.bot.clicker_bot import ClickerBot
from clicker.modules.badge.catalog import build_catalog_source
from clicker.modules.persistence.gateway import PersistenceGateway
from clicker.modules.persistence.slots import SaveSlot, build_save_slot
from clicker.modules.session.engine import GameSession
from clicker.modules.shared.settings import EconomySettings

logger = get_logger(__name__)


# ============================================================================
# Application Bootstrap
# ============================================================================


async def _build_save_slot() -> SaveSlot:
    backend = Config.SAVE_BACKEND
    if backend == "redis":
        await RedisService.initialize()
        return build_save_slot(backend, Config.SAVE_SLOT, redis_client=RedisService.client())
    if backend == "database":
        await DatabaseService.initialize()
        await DatabaseService.create_all()
        return build_save_slot(
            backend, Config.SAVE_SLOT, transaction_factory=DatabaseService.get_transaction
        )
    return build_save_slot(backend, Config.SAVE_SLOT, path=Config.SAVE_FILE_PATH)


async def _startup() -> ClickerBot:
    """Initialize all infrastructure components before launching the bot."""
    logger.info("========== BRAINROT CLICKER INITIALIZATION START ==========")

    ConfigManager.initialize()
    settings = EconomySettings.from_config_manager()
    logger.info("✓ Economy settings loaded")

    slot = await _build_save_slot()
    logger.info("✓ Save slot ready", extra={"backend": slot.backend, "slot": slot.name})

    session = await GameSession.create(
        settings,
        gateway=PersistenceGateway(slot),
        catalog_source=build_catalog_source(
            Config.BADGE_CATALOG_URL,
            Config.BADGE_CATALOG_PATH,
            Config.CATALOG_TIMEOUT_SECONDS,
        ),
    )
    logger.info("✓ Game session created", extra={"session": session.session_id})

    bot = ClickerBot(session)
    logger.info("========== INFRASTRUCTURE INITIALIZED SUCCESSFULLY ==========")
    return bot


# ============================================================================
# Application Shutdown
# ============================================================================


async def _shutdown(bot: Optional[ClickerBot]) -> None:
    logger.info("========== BRAINROT CLICKER SHUTDOWN START ==========")

    if bot is not None and not bot.is_closed():
        await bot.close()
        logger.info("✓ Bot closed")

    await RedisService.shutdown()
    await DatabaseService.shutdown()
    logger.info("========== SHUTDOWN COMPLETE ==========")


# ============================================================================
# Application Entrypoint
# ============================================================================


async def main() -> None:
    """
    Lifecycle:
        1. Validate configuration
        2. Initialize infrastructure and the game session
        3. Start bot
        4. Handle shutdown gracefully
    """
    Config.validate(require_discord=True)
    setup_logging()

    bot: Optional[ClickerBot] = None
    try:
        bot = await _startup()
        logger.info("Starting Brainrot Clicker Discord bot...")
        await bot.start(Config.DISCORD_TOKEN)
    except asyncio.CancelledError:
        logger.warning("Asyncio task cancellation received; shutting down gracefully.")
        raise
    finally:
        await _shutdown(bot)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    try:
        loop.add_signal_handler(signal.SIGTERM, loop.stop)
        logger.debug("SIGTERM handler installed")
    except NotImplementedError:
        logger.debug("SIGTERM not supported on this platform (likely Windows)")


def run() -> None:
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    _install_signal_handlers(loop)

    try:
        loop.run_until_complete(main())
    except KeyboardInterrupt:
        logger.info("Bot manually stopped via keyboard interrupt.")
    except ValueError as exc:
        logger.critical(f"Configuration validation failed: {exc}")
        sys.exit(1)
    finally:
        loop.close()
        shutdown_logging()


if __name__ == "__main__":
    run()
