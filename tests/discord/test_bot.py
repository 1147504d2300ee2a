"""Tests for the Discord bot."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pickup_match_manager.discord.bot import PickupMatchBot, create_bot, parse_mentions
from pickup_match_manager.discord.config import ConfigurationError, DiscordConfig, load_discord_config
from pickup_match_manager.domain.rating_record import RatingRecord
from pickup_match_manager.exceptions import InvalidPoolError
from tests.fakes.repos import FakeMatchRepo, FakeRatingRepo


def _sent(interaction: MagicMock) -> str:
    args, kwargs = interaction.response.send_message.call_args
    return args[0] if args else kwargs["embed"].description


class TestDiscordConfig:
    """Tests for DiscordConfig and load_discord_config."""

    def test_load_with_token_only(self) -> None:
        with patch.dict(os.environ, {"DISCORD_BOT_TOKEN": "test-token"}, clear=True):
            config = load_discord_config()

        assert config == DiscordConfig(bot_token="test-token")

    def test_load_parses_ids(self) -> None:
        env = {
            "DISCORD_BOT_TOKEN": "test-token",
            "DISCORD_GUILD_ID": "123",
            "DISCORD_CATEGORY_ID": " 456 ",
            "DISCORD_LOG_CHANNEL_ID": "789",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_discord_config()

        assert (config.guild_id, config.category_id, config.log_channel_id) == (123, 456, 789)

    def test_missing_token_raises(self) -> None:
        with patch.dict(os.environ, {}, clear=True), pytest.raises(ConfigurationError, match="DISCORD_BOT_TOKEN"):
            load_discord_config()

    def test_non_integer_id_raises(self) -> None:
        env = {"DISCORD_BOT_TOKEN": "test-token", "DISCORD_GUILD_ID": "general"}
        with patch.dict(os.environ, env, clear=True), pytest.raises(ConfigurationError, match="DISCORD_GUILD_ID"):
            load_discord_config()


class TestParseMentions:
    def test_plain_and_nickname_mentions(self) -> None:
        assert parse_mentions("<@1> <@!2>, <@3>") == ["1", "2", "3"]

    def test_ignores_role_mentions_and_text(self) -> None:
        assert parse_mentions("hello <@&9> @everyone") == []


class TestCreateBot:
    def test_returns_bot(self, bot: PickupMatchBot) -> None:
        assert isinstance(bot, PickupMatchBot)

    def test_intents(self, bot: PickupMatchBot) -> None:
        assert bot.intents.members is True
        assert bot.intents.voice_states is True

    def test_registers_commands(self, bot: PickupMatchBot) -> None:
        names = {command.name for command in bot.tree.get_commands()}
        assert names == {"startmatch", "endmatch", "leaderboard", "rating", "resetleaderboard"}

    def test_manager_uses_bot_settings(self, bot: PickupMatchBot) -> None:
        assert bot.manager.settings is bot.settings
        assert bot.settings.pool_size == 8


class TestStartMatch:
    async def test_starts_match_from_mentions(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        match = MagicMock()
        match.name = "match-1"
        players = " ".join(f"<@{n}>" for n in range(101, 109))

        with patch.object(bot.manager, "on_pool_filled", AsyncMock(return_value=match)) as mock_start:
            await bot.handle_startmatch(interaction, players)

        mock_start.assert_awaited_once_with([str(n) for n in range(101, 109)])
        assert _sent(interaction) == "🎮 **match-1** is starting."

    async def test_invalid_pool_reported_privately(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        await bot.handle_startmatch(interaction, "<@1> <@2>")

        interaction.response.send_message.assert_awaited_once()
        assert "Expected 8" in _sent(interaction)
        assert interaction.response.send_message.call_args.kwargs["ephemeral"] is True

    async def test_invalid_pool_error_message(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        error = InvalidPoolError("Already in a match: <@101>")
        with patch.object(bot.manager, "on_pool_filled", AsyncMock(side_effect=error)):
            await bot.handle_startmatch(interaction, "")

        assert _sent(interaction) == "❌ Already in a match: <@101>"


class TestEndMatch:
    async def test_unknown_match(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        await bot.handle_endmatch(interaction, 9)
        assert _sent(interaction) == "❌ No active match with id 9"

    async def test_force_ends(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        with patch.object(bot.manager, "force_terminate", AsyncMock(return_value=True)):
            await bot.handle_endmatch(interaction, 3)
        assert _sent(interaction) == "🛑 match-3 was force-ended."


class TestLeaderboard:
    async def test_empty(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        await bot.handle_leaderboard(interaction)
        embed = interaction.response.send_message.call_args.kwargs["embed"]
        assert embed.title == "🏆 Leaderboard"
        assert embed.description == "No players yet."

    async def test_lists_players(self, discord_config: DiscordConfig, interaction: MagicMock) -> None:
        repo = FakeRatingRepo([RatingRecord("7", rating=120, wins=2), RatingRecord("8", rating=95, losses=1)])
        bot = create_bot(discord_config, rating_repo=repo, match_repo=FakeMatchRepo())

        await bot.handle_leaderboard(interaction)

        lines = _sent(interaction).splitlines()
        assert len(lines) == 2
        assert "<@7>" in lines[0]


class TestRating:
    async def test_unknown_player_gets_default(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        await bot.handle_rating(interaction, "55")
        assert _sent(interaction) == "<@55>: **100** rating (0-0), last games: —"

    async def test_known_player(self, discord_config: DiscordConfig, interaction: MagicMock) -> None:
        repo = FakeRatingRepo([RatingRecord("7", rating=132, wins=3, losses=1, last_results=("W", "L", "W"))])
        bot = create_bot(discord_config, rating_repo=repo, match_repo=FakeMatchRepo())

        await bot.handle_rating(interaction, "7")

        assert _sent(interaction) == "<@7>: **132** rating (3-1), last games: W L W"


class TestResetLeaderboard:
    async def test_start_hands_out_code(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        with patch.object(bot.admin, "start_reset", return_value="123456") as mock_start:
            await bot.handle_reset_start(interaction)

        mock_start.assert_called_once_with("42")
        assert "/resetleaderboard confirm 123456" in _sent(interaction)

    async def test_confirm_with_code(self, discord_config: DiscordConfig, interaction: MagicMock) -> None:
        repo = FakeRatingRepo([RatingRecord("7", rating=132)])
        bot = create_bot(discord_config, rating_repo=repo, match_repo=FakeMatchRepo())
        code = bot.admin.start_reset("42")

        with patch.object(bot.presenter, "audit", AsyncMock()) as mock_audit:
            await bot.handle_reset_confirm(interaction, f" {code} ")

        assert _sent(interaction) == "✅ Leaderboard reset (1 records)."
        mock_audit.assert_awaited_once()
        assert repo.get("7") == RatingRecord("7", rating=0)

    async def test_confirm_with_wrong_code(self, bot: PickupMatchBot, interaction: MagicMock) -> None:
        bot.admin.start_reset("42")
        await bot.handle_reset_confirm(interaction, "nope")
        assert _sent(interaction) == "❌ Invalid code."
