"""Discord bot client for the pickup match manager.

Hosts the slash commands and owns the ``MatchManager`` that runs matches
through a ``DiscordPresenter``.

- ``/startmatch``: hand eight mentioned members to the manager as a filled pool
- ``/endmatch``: force-terminate an active match (administrators)
- ``/leaderboard`` and ``/rating``: read the rating table
- ``/resetleaderboard start|confirm``: two-step wipe of every rating record (administrators)
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from pickup_match_manager.config import MatchSettings
from pickup_match_manager.discord.presenter import DiscordPresenter
from pickup_match_manager.domain.rating_record import default_record
from pickup_match_manager.domain.result import Err, Ok
from pickup_match_manager.engine.manager import MatchManager
from pickup_match_manager.exceptions import InvalidPoolError, PersistenceError
from pickup_match_manager.services.admin import AdminService

if TYPE_CHECKING:
    from pickup_match_manager.discord.config import DiscordConfig
    from pickup_match_manager.repos.protocols import MatchRepo, RatingRepo

logger = logging.getLogger(__name__)

_MENTION_RE = re.compile(r"<@!?(\d+)>")


def parse_mentions(text: str) -> list[str]:
    """Member ids mentioned in ``text``, in order of appearance."""
    return _MENTION_RE.findall(text)


class PickupMatchBot(discord.Client):
    """Discord client that runs pickup matches and answers the admin commands."""

    def __init__(
        self,
        config: DiscordConfig,
        *,
        rating_repo: RatingRepo,
        match_repo: MatchRepo,
        settings: MatchSettings | None = None,
        **kwargs,
    ) -> None:
        intents = discord.Intents.default()
        intents.members = True
        intents.voice_states = True

        super().__init__(intents=intents, **kwargs)

        self._config = config
        self.settings = settings or MatchSettings()
        self.tree = app_commands.CommandTree(self)
        self.presenter = DiscordPresenter(self, config)
        self.manager = MatchManager(self.presenter, rating_repo, match_repo, self.settings)
        self.admin = AdminService(rating_repo, self.settings.rating, manager=self.manager)
        self._rating_repo = rating_repo
        self._register_commands()

    async def setup_hook(self) -> None:
        if self._config.guild_id is not None:
            guild = discord.Object(id=self._config.guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
        else:
            await self.tree.sync()

    async def on_ready(self) -> None:
        """Handle bot ready event."""
        logger.info("Bot is ready. Logged in as %s (ID: %s)", self.user, self.user.id if self.user else "unknown")

    async def close(self) -> None:
        await self.manager.shutdown()
        await super().close()

    def _register_commands(self) -> None:
        @self.tree.command(name="startmatch", description="Start a match with eight mentioned players")
        @app_commands.describe(players="Mention all eight players")
        async def startmatch(interaction: discord.Interaction, players: str) -> None:
            await self.handle_startmatch(interaction, players)

        @self.tree.command(name="endmatch", description="Force-terminate an active match")
        @app_commands.default_permissions(administrator=True)
        async def endmatch(interaction: discord.Interaction, match_id: int) -> None:
            await self.handle_endmatch(interaction, match_id)

        @self.tree.command(name="leaderboard", description="Show the top players by rating")
        async def leaderboard(interaction: discord.Interaction) -> None:
            await self.handle_leaderboard(interaction)

        @self.tree.command(name="rating", description="Show a player's rating")
        async def rating(interaction: discord.Interaction, member: discord.Member | None = None) -> None:
            target = member or interaction.user
            await self.handle_rating(interaction, str(target.id))

        reset = app_commands.Group(
            name="resetleaderboard",
            description="Wipe every rating record",
            default_permissions=discord.Permissions(administrator=True),
        )

        @reset.command(name="start", description="Get a confirmation code")
        async def reset_start(interaction: discord.Interaction) -> None:
            await self.handle_reset_start(interaction)

        @reset.command(name="confirm", description="Confirm the reset with your code")
        async def reset_confirm(interaction: discord.Interaction, code: str) -> None:
            await self.handle_reset_confirm(interaction, code)

        self.tree.add_command(reset)

    async def handle_startmatch(self, interaction: discord.Interaction, players: str) -> None:
        ids = parse_mentions(players)
        try:
            match = await self.manager.on_pool_filled(ids)
        except InvalidPoolError as e:
            await interaction.response.send_message(f"❌ {e}", ephemeral=True)
            return
        except PersistenceError:
            logger.exception("Could not allocate a match id")
            await interaction.response.send_message("❌ Could not start the match. Try again.", ephemeral=True)
            return
        await interaction.response.send_message(f"🎮 **{match.name}** is starting.")

    async def handle_endmatch(self, interaction: discord.Interaction, match_id: int) -> None:
        match await self.admin.force_terminate(match_id):
            case Ok(mid):
                await interaction.response.send_message(f"🛑 match-{mid} was force-ended.", ephemeral=True)
            case Err(e):
                await interaction.response.send_message(f"❌ {e.message}", ephemeral=True)

    async def handle_leaderboard(self, interaction: discord.Interaction) -> None:
        lines = self.admin.leaderboard_lines(10)
        embed = discord.Embed(
            title="🏆 Leaderboard",
            description="\n".join(lines) if lines else "No players yet.",
            colour=discord.Colour.gold(),
        )
        await interaction.response.send_message(embed=embed)

    async def handle_rating(self, interaction: discord.Interaction, participant_id: str) -> None:
        record = self._rating_repo.get(participant_id) or default_record(
            participant_id, self.settings.rating.default_rating
        )
        recent = " ".join(record.last_results) or "—"
        await interaction.response.send_message(
            f"<@{participant_id}>: **{record.rating}** rating ({record.record}), last games: {recent}",
            ephemeral=True,
        )

    async def handle_reset_start(self, interaction: discord.Interaction) -> None:
        code = self.admin.start_reset(str(interaction.user.id))
        await interaction.response.send_message(
            f"⚠️ This wipes every rating record. Run `/resetleaderboard confirm {code}` to proceed.",
            ephemeral=True,
        )

    async def handle_reset_confirm(self, interaction: discord.Interaction, code: str) -> None:
        match self.admin.confirm_reset(str(interaction.user.id), code.strip()):
            case Ok(count):
                await self.presenter.audit(f"🧹 Leaderboard reset by <@{interaction.user.id}> ({count} records)")
                await interaction.response.send_message(f"✅ Leaderboard reset ({count} records).", ephemeral=True)
            case Err(e):
                await interaction.response.send_message(f"❌ {e.message}", ephemeral=True)


def create_bot(
    config: DiscordConfig,
    *,
    rating_repo: RatingRepo,
    match_repo: MatchRepo,
    settings: MatchSettings | None = None,
) -> PickupMatchBot:
    """Create a new Discord bot instance wired to the given repositories."""
    return PickupMatchBot(config, rating_repo=rating_repo, match_repo=match_repo, settings=settings)


async def run_bot(
    config: DiscordConfig,
    *,
    rating_repo: RatingRepo,
    match_repo: MatchRepo,
    settings: MatchSettings | None = None,
) -> None:
    """Run the Discord bot until it disconnects."""
    bot = create_bot(config, rating_repo=rating_repo, match_repo=match_repo, settings=settings)
    async with bot:
        await bot.start(config.bot_token)
