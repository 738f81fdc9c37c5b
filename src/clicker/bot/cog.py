"""
ClickerCog: Discord prefix commands over a `GameSession`.

Purpose
-------
Expose the player's actions as owner-only prefix commands and render the
results as embeds. The cog holds no game logic: every command calls one
session action or accessor and formats its `ActionResult`.

Commands
--------
- click                           : spend battery for coins
- upgrade <click|battery|charge>  : buy one upgrade level
- badge <id>                      : buy or select a badge
- badges                          : list the catalog with status
- bonus                           : claim the bonus while it is available
- theme                           : toggle light/dark
- stats                           : show the main panel
- reset                           : start over from defaults
"""

from __future__ import annotations

from typing import Optional

import discord
from discord.ext import commands

from clicker.bot.embeds import EmbedFactory
from clicker.core.logging.logger import LogContext, get_logger
from clicker.modules.session.engine import ActionResult, GameSession, Outcome
from clicker.modules.shared.exceptions import get_error_severity, should_alert

logger = get_logger(__name__)


class ClickerCog(commands.Cog, name="Clicker"):
    """The clicker game's commands. Only the bot owner can play."""

    def __init__(self, bot: commands.Bot, session: GameSession) -> None:
        self.bot = bot
        self.session = session

    async def cog_check(self, ctx: commands.Context) -> bool:  # type: ignore[override]
        return await self.bot.is_owner(ctx.author)

    # ========================================================================
    # FEEDBACK
    # ========================================================================

    async def _safe_send(self, ctx: commands.Context, embed: discord.Embed) -> None:
        """Reply when possible, fall back to send."""
        try:
            if ctx.message:
                await ctx.reply(embed=embed, mention_author=False)
            else:
                await ctx.send(embed=embed)
        except discord.HTTPException as exc:
            logger.error(
                "Failed to send embed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )

    async def _send_rejection(self, ctx: commands.Context, result: ActionResult) -> None:
        details = result.details
        if result.outcome is Outcome.INSUFFICIENT_FUNDS:
            embed = EmbedFactory.error(
                "Not enough coins",
                f"You need **{details['required']:,}** coins but have **{details['current']:,}**.",
                help_text="Click some more and try again.",
            )
        elif result.outcome is Outcome.UNKNOWN_BADGE:
            embed = EmbedFactory.error(
                "Unknown badge",
                f"No badge with id `{details.get('badge_id')}`.",
                help_text="Use `badges` to see the catalog.",
            )
        elif result.outcome is Outcome.BATTERY_EMPTY:
            embed = EmbedFactory.warning("Battery empty", "Wait for the battery to recharge.")
        elif result.outcome is Outcome.BONUS_UNAVAILABLE:
            embed = EmbedFactory.warning("No bonus", "There is no bonus to claim right now.")
        elif result.outcome is Outcome.INVALID_TRACK:
            embed = EmbedFactory.error(
                "Unknown upgrade",
                f"`{details.get('track')}` is not an upgrade.",
                help_text="Choose click, battery or charge.",
            )
        else:
            embed = EmbedFactory.error("Action failed", result.outcome.value)
        await self._safe_send(ctx, embed)

    # ========================================================================
    # COMMANDS
    # ========================================================================

    @commands.command(name="click", aliases=["c"])
    async def click(self, ctx: commands.Context) -> None:
        """Spend battery for coins."""
        result = await self.session.click()
        if not result.ok:
            await self._send_rejection(ctx, result)
            return
        suffix = " (battery drained)" if result.details.get("partial") else ""
        await self._safe_send(
            ctx,
            EmbedFactory.success(
                f"+{result.currency_delta:,} coins",
                f"Balance: **{self.session.currency:,}**\n"
                f"Battery: {self.session.battery_current}/{self.session.battery_capacity}{suffix}",
            ),
        )

    @commands.command(name="upgrade", aliases=["up"])
    async def upgrade(self, ctx: commands.Context, track: str) -> None:
        """Buy one level of click, battery or charge."""
        result = await self.session.purchase_upgrade(track.lower())
        if not result.ok:
            await self._send_rejection(ctx, result)
            return
        details = result.details
        await self._safe_send(
            ctx,
            EmbedFactory.success(
                f"{details['track'].title()} upgraded",
                f"New level: **{details['new_level']:,}**\n"
                f"Paid: {-result.currency_delta:,} | Next: {details['next_cost']:,}",
            ),
        )

    @commands.command(name="badge")
    async def badge(self, ctx: commands.Context, badge_id: str) -> None:
        """Buy (if needed) and select a badge."""
        result = await self.session.buy_or_select_badge(badge_id)
        if not result.ok:
            await self._send_rejection(ctx, result)
            return
        badge = self.session.current_badge
        verb = "Bought and selected" if result.details.get("purchased") else "Selected"
        await self._safe_send(
            ctx,
            EmbedFactory.success(
                f"{verb} {badge.name}",
                f"Rarity: **{badge.rarity_label}** (x{badge.multiplier} per click)",
            ),
        )

    @commands.command(name="badges")
    async def badges(self, ctx: commands.Context) -> None:
        """List every badge with its status."""
        await self._safe_send(ctx, EmbedFactory.badge_shop(self.session))

    @commands.command(name="bonus")
    async def bonus(self, ctx: commands.Context) -> None:
        """Claim the bonus while it is available."""
        result = await self.session.claim_bonus()
        if not result.ok:
            await self._send_rejection(ctx, result)
            return
        await self._safe_send(
            ctx,
            EmbedFactory.success("Bonus claimed!", f"+{result.currency_delta:,} coins"),
        )

    @commands.command(name="theme")
    async def theme(self, ctx: commands.Context) -> None:
        """Toggle between light and dark mode."""
        result = await self.session.toggle_theme()
        await self._safe_send(
            ctx, EmbedFactory.info("Theme changed", f"Now using **{result.details['theme']}** mode.")
        )

    @commands.command(name="stats", aliases=["s"])
    async def stats(self, ctx: commands.Context) -> None:
        """Show the main game panel."""
        await self._safe_send(ctx, EmbedFactory.stats(self.session))

    @commands.command(name="reset")
    async def reset(self, ctx: commands.Context, confirm: Optional[str] = None) -> None:
        """Start over from defaults. Requires `reset confirm`."""
        if confirm != "confirm":
            await self._safe_send(
                ctx,
                EmbedFactory.warning(
                    "Reset game?",
                    "This wipes every coin, upgrade and badge. Run `reset confirm` to proceed.",
                ),
            )
            return
        await self.session.reset()
        async with LogContext(session_id=self.session.session_id, operation="reset"):
            logger.warning("Game reset from Discord", extra={"user_id": ctx.author.id})
        await self._safe_send(ctx, EmbedFactory.info("Game reset", "Everything is back to the start."))

    # ========================================================================
    # ERRORS
    # ========================================================================

    async def cog_command_error(self, ctx: commands.Context, error: Exception) -> None:  # type: ignore[override]
        if isinstance(error, commands.CheckFailure):
            return
        if isinstance(error, commands.MissingRequiredArgument):
            await self._safe_send(
                ctx,
                EmbedFactory.error(
                    "Missing argument",
                    f"`{error.param.name}` is required.",
                    help_text=f"Usage: `{ctx.prefix}{ctx.command} {ctx.command.signature if ctx.command else ''}`",
                ),
            )
            return
        original = getattr(error, "original", error)
        log = logger.error if should_alert(original) else logger.warning
        log(
            "Command failed",
            extra={
                "command": str(ctx.command),
                "error": str(original),
                "error_type": type(original).__name__,
                "severity": get_error_severity(original).value,
            },
            exc_info=original,
        )
