#!/usr/bin/env python
"""Entry point script for running the Discord bot.

Usage:
    DISCORD_BOT_TOKEN=xxx uv run python scripts/run_discord_bot.py

Environment variables:
    DISCORD_BOT_TOKEN: Required. The Discord bot token.
    DISCORD_GUILD_ID: Optional. Guild for command sync and match rooms.
    DISCORD_CATEGORY_ID: Optional. Category that match rooms are created under.
    DISCORD_LOG_CHANNEL_ID: Optional. Channel that receives audit lines.
    PICKUP__STORAGE__DB_PATH: Optional. SQLite file for ratings and match records.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from pickup_match_manager.cli.factory import build_storage_context
from pickup_match_manager.discord import ConfigurationError, load_discord_config, run_bot


def main() -> int:
    """Run the Discord bot."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    try:
        config = load_discord_config()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    logger.info("Starting Discord bot...")
    try:
        with build_storage_context() as ctx:
            asyncio.run(
                run_bot(config, rating_repo=ctx.rating_repo, match_repo=ctx.match_repo, settings=ctx.settings)
            )
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception:
        logger.exception("Bot crashed")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
