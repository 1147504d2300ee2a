"""Discord rendering of the match engine.

Rooms are private guild channels, prompts are button views, and each button
press is handed to the engine's choice handler; the handler's verdict comes
back to the presser as an ephemeral reply.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import discord
from pickup_match_manager.engine.presenter import Prompt, PromptOption, RoomHandle, RoomKind

if TYPE_CHECKING:
    from pickup_match_manager.discord.config import DiscordConfig
    from pickup_match_manager.engine.presenter import ChoiceHandler

logger = logging.getLogger(__name__)

_EMBED_COLOUR = discord.Colour.blurple()


class ChoiceButton(discord.ui.Button["PromptView"]):
    def __init__(self, option: PromptOption) -> None:
        super().__init__(label=option.label[:80], style=discord.ButtonStyle.primary)
        self.value = option.value

    async def callback(self, interaction: discord.Interaction) -> None:
        assert self.view is not None
        result = self.view.on_choice(str(interaction.user.id), self.value)
        await interaction.response.send_message(result.explain(), ephemeral=True)


class PromptView(discord.ui.View):
    """Buttons for one prompt; stays up until the engine closes it."""

    def __init__(self, prompt: Prompt, on_choice: ChoiceHandler) -> None:
        super().__init__(timeout=None)
        self.prompt = prompt
        self.on_choice = on_choice
        for option in prompt.options:
            self.add_item(ChoiceButton(option))


class DiscordPromptHandle:
    def __init__(self, views: Sequence[PromptView], messages: Sequence[discord.Message]) -> None:
        self._views = list(views)
        self._messages = list(messages)

    async def close(self) -> None:
        for view in self._views:
            view.stop()
        for message in self._messages:
            try:
                await message.edit(view=None)
            except discord.HTTPException:
                logger.debug("Could not strip buttons from message %s", message.id)


def prompt_embed(prompt: Prompt) -> discord.Embed:
    embed = discord.Embed(title=prompt.title, description=prompt.description or None, colour=_EMBED_COLOUR)
    if prompt.timeout is not None:
        embed.set_footer(text=f"⏱️ {prompt.timeout:g}s")
    return embed


class DiscordPresenter:
    """``Presenter`` backed by a connected ``discord.Client``.

    Display names are cached per participant for the lifetime of the
    presenter: guild nickname first, then username, then the raw id.
    """

    def __init__(self, client: discord.Client, config: DiscordConfig) -> None:
        self._client = client
        self._config = config
        self._names: dict[str, str] = {}

    @property
    def guild(self) -> discord.Guild:
        if self._config.guild_id is not None:
            guild = self._client.get_guild(self._config.guild_id)
            if guild is not None:
                return guild
        if not self._client.guilds:
            raise RuntimeError("Bot is not a member of any guild")
        return self._client.guilds[0]

    async def display_name(self, participant_id: str) -> str:
        if participant_id in self._names:
            return self._names[participant_id]
        name = participant_id
        member = await self._member(participant_id)
        if member is not None:
            name = member.display_name
        else:
            try:
                user = await self._client.fetch_user(int(participant_id))
                name = user.display_name
            except (ValueError, discord.HTTPException):
                logger.debug("No Discord user for %s; using the raw id", participant_id)
        self._names[participant_id] = name
        return name

    async def create_room(self, kind: RoomKind, name: str, participants: Sequence[str]) -> RoomHandle:
        guild = self.guild
        overwrites: dict[discord.Role | discord.Member | discord.Object, discord.PermissionOverwrite] = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            guild.me: discord.PermissionOverwrite(view_channel=True, send_messages=True, move_members=True),
        }
        for pid in participants:
            overwrites[discord.Object(id=int(pid))] = discord.PermissionOverwrite(
                view_channel=True, send_messages=True, connect=True, speak=True
            )
        category = guild.get_channel(self._config.category_id) if self._config.category_id else None
        if not isinstance(category, discord.CategoryChannel):
            category = None

        channel: discord.abc.GuildChannel
        if kind is RoomKind.VOICE:
            channel = await guild.create_voice_channel(name, category=category, overwrites=overwrites)
        else:
            channel = await guild.create_text_channel(name, category=category, overwrites=overwrites)
        logger.info("Created %s room %s (%s)", kind, name, channel.id)
        return RoomHandle(id=channel.id, kind=kind, name=name)

    async def delete_room(self, room: RoomHandle) -> None:
        channel = self.guild.get_channel(int(room.id))
        if channel is None:
            return
        try:
            await channel.delete(reason=f"{room.name} archived")
        except discord.HTTPException:
            logger.warning("Could not delete room %s", room.name, exc_info=True)

    async def open_prompt(
        self, room: RoomHandle | None, prompt: Prompt, on_choice: ChoiceHandler
    ) -> DiscordPromptHandle:
        embed = prompt_embed(prompt)
        views: list[PromptView] = []
        messages: list[discord.Message] = []
        if prompt.private or room is None:
            for pid in sorted(prompt.voters):
                user = await self._user(pid)
                if user is None:
                    continue
                view = PromptView(prompt, on_choice)
                views.append(view)
                try:
                    messages.append(await user.send(embed=embed, view=view))
                except discord.HTTPException:
                    logger.warning("Could not DM prompt %s to %s", prompt.purpose, pid)
        else:
            channel = self._text_channel(room)
            if channel is not None:
                view = PromptView(prompt, on_choice)
                views.append(view)
                messages.append(await channel.send(embed=embed, view=view))
        return DiscordPromptHandle(views, messages)

    async def announce(self, room: RoomHandle | None, message: str) -> None:
        channel = self._text_channel(room) if room is not None else None
        if channel is None:
            logger.info("announce: %s", message)
            return
        await channel.send(message)

    async def notify(self, participant_id: str, message: str) -> None:
        user = await self._user(participant_id)
        if user is None:
            return
        try:
            await user.send(message)
        except discord.HTTPException:
            logger.warning("Could not DM %s", participant_id)

    async def move_to_room(self, participant_id: str, room: RoomHandle) -> None:
        channel = self.guild.get_channel(int(room.id))
        if not isinstance(channel, discord.VoiceChannel):
            logger.warning("Room %s is not a voice channel", room.name)
            return
        member = await self._member(participant_id)
        if member is not None and member.voice is not None and member.voice.channel is not None:
            try:
                await member.move_to(channel)
                return
            except discord.HTTPException:
                logger.warning("Could not move %s into %s", participant_id, room.name)
        await self.notify(participant_id, f"🔊 Join your team voice channel: {channel.jump_url}")

    async def audit(self, message: str) -> None:
        logger.info("audit: %s", message)
        if self._config.log_channel_id is None:
            return
        channel = self._client.get_channel(self._config.log_channel_id)
        if not isinstance(channel, discord.TextChannel):
            return
        embed = discord.Embed(description=message[:4096], colour=_EMBED_COLOUR, timestamp=discord.utils.utcnow())
        try:
            await channel.send(embed=embed)
        except discord.HTTPException:
            logger.warning("Could not post to the audit channel")

    def _text_channel(self, room: RoomHandle) -> discord.TextChannel | None:
        channel = self.guild.get_channel(int(room.id))
        return channel if isinstance(channel, discord.TextChannel) else None

    async def _member(self, participant_id: str) -> discord.Member | None:
        try:
            member_id = int(participant_id)
        except ValueError:
            return None
        guild = self.guild
        member = guild.get_member(member_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(member_id)
        except discord.HTTPException:
            return None

    async def _user(self, participant_id: str) -> discord.User | None:
        try:
            user_id = int(participant_id)
        except ValueError:
            return None
        user = self._client.get_user(user_id)
        if user is not None:
            return user
        try:
            return await self._client.fetch_user(user_id)
        except discord.HTTPException:
            logger.warning("Unknown Discord user %s", participant_id)
            return None
