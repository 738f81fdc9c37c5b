"""
Embed factory for the clicker's Discord replies.

Features:
- Consistent status colors and footer
- Automatic Discord limits enforcement
- Builders for the stats panel and the badge shop

Usage:
    >>> from clicker.bot.embeds import EmbedFactory
    >>> embed = EmbedFactory.success("Upgrade bought", "Click level is now 2")
    >>> embed = EmbedFactory.stats(session)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import discord

from clicker.domain.models.game_state import Theme, UpgradeTrack

if TYPE_CHECKING:
    from clicker.modules.session.engine import GameSession


class EmbedColor:
    DEFAULT = 0x5865F2  # Discord Blurple
    SUCCESS = 0x57F287  # Green
    ERROR = 0xED4245    # Red
    WARNING = 0xFEE75C  # Yellow
    INFO = 0x5865F2     # Blue
    LIGHT = 0xF5F5F5
    DARK = 0x23272A


TITLE_LIMIT = 256
DESCRIPTION_LIMIT = 4096
FIELD_LIMIT = 1024
FOOTER_LIMIT = 2048
MAX_FIELDS = 25
DEFAULT_FOOTER = "Brainrot Clicker"


def truncate_text(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def battery_bar(percentage: float, width: int = 10) -> str:
    filled = round(percentage / 100 * width)
    return "█" * filled + "░" * (width - filled)


class EmbedFactory:
    """Standardized embeds; all include a timestamp and respect Discord limits."""

    @staticmethod
    def _base_embed(
        title: str,
        description: str,
        color: int,
        footer: Optional[str] = None,
    ) -> discord.Embed:
        embed = discord.Embed(
            title=truncate_text(title, TITLE_LIMIT),
            description=truncate_text(description, DESCRIPTION_LIMIT),
            color=color,
            timestamp=datetime.now(timezone.utc),
        )
        if footer:
            embed.set_footer(text=truncate_text(footer, FOOTER_LIMIT))
        return embed

    # =========================================================================
    # CORE TYPES
    # =========================================================================

    @staticmethod
    def success(title: str, description: str, footer: Optional[str] = None) -> discord.Embed:
        return EmbedFactory._base_embed(title, description, EmbedColor.SUCCESS, footer or DEFAULT_FOOTER)

    @staticmethod
    def error(title: str, description: str, help_text: Optional[str] = None) -> discord.Embed:
        """
        Error embeds with optional help text.

        Args:
            title: Error title
            description: Error description
            help_text: Optional suggestion for the player
        """
        desc = description
        if help_text:
            desc += f"\n\n**Help:** {help_text}"
        return EmbedFactory._base_embed(title, desc, EmbedColor.ERROR)

    @staticmethod
    def warning(title: str, description: str, footer: Optional[str] = None) -> discord.Embed:
        return EmbedFactory._base_embed(title, description, EmbedColor.WARNING, footer or DEFAULT_FOOTER)

    @staticmethod
    def info(title: str, description: str, footer: Optional[str] = None) -> discord.Embed:
        return EmbedFactory._base_embed(title, description, EmbedColor.INFO, footer or DEFAULT_FOOTER)

    # =========================================================================
    # GAME PANELS
    # =========================================================================

    @staticmethod
    def stats(session: GameSession) -> discord.Embed:
        """The main panel: currency, battery, levels and upgrade prices."""
        badge = session.current_badge
        color = EmbedColor.DARK if session.theme is Theme.DARK else EmbedColor.LIGHT
        embed = EmbedFactory._base_embed(
            "Brainrot Clicker",
            f"**{session.currency:,}** coins",
            color,
            f"Theme: {session.theme.value}",
        )
        embed.add_field(
            name="Battery",
            value=(
                f"{battery_bar(session.battery_percentage)} "
                f"{session.battery_current}/{session.battery_capacity} "
                f"({session.battery_percentage:.0f}%)"
            ),
            inline=False,
        )
        embed.add_field(name="Click level", value=str(session.click_level), inline=True)
        embed.add_field(name="Charge level", value=str(session.charge_level), inline=True)
        embed.add_field(
            name="Per click",
            value=f"{session.income_per_click:,} (x{session.rarity_multiplier})",
            inline=True,
        )
        embed.add_field(
            name="Upgrades",
            value="\n".join(
                f"{track.value}: {session.upgrade_cost(track):,}"
                + ("" if session.can_afford_upgrade(track) else " (locked)")
                for track in UpgradeTrack
            ),
            inline=False,
        )
        embed.add_field(
            name="Badge",
            value=f"{badge.name} [{badge.rarity_label}]",
            inline=False,
        )
        if session.bonus_available:
            embed.add_field(name="Bonus", value="A bonus is available! Claim it fast.", inline=False)
        return embed

    @staticmethod
    def badge_shop(session: GameSession) -> discord.Embed:
        embed = EmbedFactory._base_embed(
            "Badges",
            f"Selected: **{session.current_badge.name}**",
            EmbedColor.INFO,
            "" if session.catalog_loaded else "Catalog still loading",
        )
        for listing in session.badges[:MAX_FIELDS]:
            if listing.selected:
                status = "selected"
            elif listing.owned:
                status = "owned"
            elif listing.badge.is_free:
                status = "free"
            else:
                status = f"{listing.badge.cost:,} coins" + ("" if listing.affordable else " (locked)")
            embed.add_field(
                name=truncate_text(f"{listing.badge.name} [{listing.badge.rarity_label}]", TITLE_LIMIT),
                value=truncate_text(f"`{listing.badge.id}` x{listing.badge.multiplier} | {status}", FIELD_LIMIT),
                inline=True,
            )
        return embed
