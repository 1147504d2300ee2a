"""Discord bot configuration.

Loads credentials and channel ids from environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from pickup_match_manager.exceptions import ConfigurationError


@dataclass(frozen=True)
class DiscordConfig:
    """Configuration for the Discord bot.

    Attributes:
        bot_token: Discord bot token (required).
        guild_id: Guild the slash commands are synced to. If None, commands are synced globally.
        category_id: Category that match rooms are created under.
        log_channel_id: Channel that receives audit lines. If None, audit lines only go to the logger.
    """

    bot_token: str
    guild_id: int | None = None
    category_id: int | None = None
    log_channel_id: int | None = None


def _optional_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer id: {e}") from e


def load_discord_config() -> DiscordConfig:
    """Load Discord configuration from environment variables.

    Environment variables:
        DISCORD_BOT_TOKEN: Required. The Discord bot token.
        DISCORD_GUILD_ID: Optional. Guild id for command sync and room creation.
        DISCORD_CATEGORY_ID: Optional. Category id for match rooms.
        DISCORD_LOG_CHANNEL_ID: Optional. Channel id for the audit log.

    Raises:
        ConfigurationError: If the token is missing or an id is not an integer.
    """
    bot_token = os.environ.get("DISCORD_BOT_TOKEN")
    if not bot_token:
        raise ConfigurationError("DISCORD_BOT_TOKEN environment variable is required")

    return DiscordConfig(
        bot_token=bot_token,
        guild_id=_optional_int("DISCORD_GUILD_ID"),
        category_id=_optional_int("DISCORD_CATEGORY_ID"),
        log_channel_id=_optional_int("DISCORD_LOG_CHANNEL_ID"),
    )
