"""Discord frontend for the pickup match manager.

Public API:
    create_bot(config, rating_repo=..., match_repo=...) -> PickupMatchBot
    run_bot(config, rating_repo=..., match_repo=...) -> None (async)
    load_discord_config() -> DiscordConfig

Example usage:
    import asyncio
    from pickup_match_manager.db.connection import create_connection
    from pickup_match_manager.discord import load_discord_config, run_bot
    from pickup_match_manager.repos.match_repo import SqliteMatchRepo
    from pickup_match_manager.repos.rating_repo import SqliteRatingRepo

    conn = create_connection("matches.db")
    config = load_discord_config()
    asyncio.run(run_bot(config, rating_repo=SqliteRatingRepo(conn), match_repo=SqliteMatchRepo(conn)))
"""

from pickup_match_manager.discord.bot import (
    PickupMatchBot,
    create_bot,
    run_bot,
)
from pickup_match_manager.discord.config import (
    DiscordConfig,
    load_discord_config,
)
from pickup_match_manager.discord.presenter import DiscordPresenter
from pickup_match_manager.exceptions import ConfigurationError

__all__ = [
    "ConfigurationError",
    "DiscordConfig",
    "DiscordPresenter",
    "PickupMatchBot",
    "create_bot",
    "load_discord_config",
    "run_bot",
]
