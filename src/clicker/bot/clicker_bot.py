"""
ClickerBot - Discord Bot Class

Purpose
-------
Host one `GameSession` behind Discord prefix commands.

Responsibilities
----------------
- Discord integration (intents, prefix, presence)
- Register `ClickerCog` and start the session's timers in `setup_hook`
- Stop the session (timers, catalog fetch, pending saves) on close
- Global error handling for unexpected command failures

Non-Responsibilities
--------------------
- Infrastructure initialization (handled in `clicker.main`)
- Game rules (session and services)
"""

from __future__ import annotations

from typing import List

import discord
from discord.ext import commands

from clicker.bot.cog import ClickerCog
from clicker.core.config.config import Config
from clicker.core.logging.logger import LogContext, get_logger
from clicker.modules.session.engine import GameSession

logger = get_logger(__name__)


class ClickerBot(commands.Bot):
    """Discord bot wrapping a single game session."""

    def __init__(self, session: GameSession, prefix: str | None = None) -> None:
        self.session = session
        self._prefix = prefix or Config.COMMAND_PREFIX

        intents = discord.Intents.default()
        intents.message_content = True

        super().__init__(
            command_prefix=self._get_prefix,
            intents=intents,
            help_command=commands.DefaultHelpCommand(),
            case_insensitive=True,
            strip_after_prefix=True,
            description="Brainrot Clicker",
        )
        self.bot_ready = False

    def _get_prefix(self, bot: commands.Bot, message: discord.Message) -> List[str]:
        return commands.when_mentioned_or(self._prefix)(bot, message)

    async def setup_hook(self) -> None:
        await self.add_cog(ClickerCog(self, self.session))
        self.session.start()
        logger.info("Bot setup complete", extra={"prefix": self._prefix})

    async def on_ready(self) -> None:
        self.bot_ready = True
        logger.info("Bot is ONLINE as %s", self.user)
        try:
            await self.change_presence(
                activity=discord.Activity(
                    type=discord.ActivityType.playing,
                    name=f"{self._prefix}click",
                )
            )
        except discord.HTTPException as exc:
            logger.warning(
                "Failed to update presence",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )

    async def on_command_error(self, ctx: commands.Context, error: Exception) -> None:  # type: ignore[override]
        if isinstance(error, (commands.CommandNotFound, commands.CheckFailure)):
            return
        if ctx.cog is not None and ctx.cog.has_error_handler():
            return
        async with LogContext(
            session_id=self.session.session_id,
            operation=f"prefix:{ctx.command}" if ctx.command else "unknown",
        ):
            original = getattr(error, "original", error)
            logger.error(
                "Unhandled command error",
                extra={"error": str(original), "error_type": type(original).__name__},
                exc_info=original,
            )

    async def close(self) -> None:
        await self.session.stop()
        await super().close()
