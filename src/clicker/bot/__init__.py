"""Discord adapter: bot, cog and embeds."""
