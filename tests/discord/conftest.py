"""Test fixtures for Discord bot tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from pickup_match_manager.discord.bot import PickupMatchBot, create_bot
from pickup_match_manager.discord.config import DiscordConfig
from tests.fakes.repos import FakeMatchRepo, FakeRatingRepo


@pytest.fixture
def discord_config() -> DiscordConfig:
    """Create a test Discord configuration."""
    return DiscordConfig(bot_token="test-token-123", guild_id=111, category_id=222, log_channel_id=333)


@pytest.fixture
def bot(discord_config: DiscordConfig, rating_repo: FakeRatingRepo, match_repo: FakeMatchRepo) -> PickupMatchBot:
    return create_bot(discord_config, rating_repo=rating_repo, match_repo=match_repo)


@pytest.fixture
def interaction() -> MagicMock:
    """A slash-command interaction invoked by user 42."""
    interaction = MagicMock()
    interaction.user.id = 42
    interaction.response.send_message = AsyncMock()
    return interaction
