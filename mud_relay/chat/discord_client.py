"""Discord side of the relay, built on discord.py."""

from collections.abc import Callable

import discord

from mud_relay.relay.bridge import ChatEvent
from mud_relay.relay.sanitizer import MemberResolver
from mud_relay.utils.logging import get_logger


logger = get_logger(__name__)


def member_resolver(guild: discord.Guild | None) -> MemberResolver | None:
    """Resolve user ids to display names within a guild's member cache."""
    if guild is None:
        return None

    def resolve(user_id: int) -> str | None:
        member = guild.get_member(user_id)
        if member is None:
            return None
        return member.display_name or member.name

    return resolve


def to_chat_event(message: discord.Message) -> ChatEvent:
    """Convert a Discord message into a relay event."""
    author = message.author
    # Members carry a guild nickname, plain users only a username
    author_name = getattr(author, "nick", None) or author.name

    return ChatEvent(
        channel_id=str(message.channel.id),
        author_name=author_name,
        content=message.content,
        author_id=author.id,
        is_bot=author.bot,
        resolve_member=member_resolver(message.guild),
    )


class RelayDiscordClient(discord.Client):
    """Discord client that feeds messages to the relay and posts MUD chatter."""

    def __init__(
        self,
        channel_ids: list[str],
        health=None,
        on_chat_event: Callable[[ChatEvent], None] | None = None,
        **discord_kwargs,
    ):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.message_content = True
        intents.members = True
        super().__init__(intents=intents, **discord_kwargs)

        self.channel_ids = channel_ids
        self.health = health
        self.on_chat_event = on_chat_event

    def _report(self, connected: bool):
        if self.health:
            self.health.set_chat_connected(connected)

    async def on_ready(self):
        logger.info("Logged into Discord", user=str(self.user))
        self._report(True)

        for channel_id in self.channel_ids:
            try:
                channel = await self.fetch_channel(int(channel_id))
            except (discord.HTTPException, ValueError) as e:
                logger.warning("Configured channel not available", channel_id=channel_id, error=str(e))
                continue

            guild = getattr(channel, "guild", None)
            logger.info(
                "Found channel",
                channel=f"#{getattr(channel, 'name', channel_id)}",
                channel_id=channel.id,
                guild=guild.name if guild else None,
                guild_id=guild.id if guild else None,
            )

    async def on_disconnect(self):
        self._report(False)

    async def on_resumed(self):
        self._report(True)

    async def on_message(self, message: discord.Message):
        if self.on_chat_event:
            self.on_chat_event(to_chat_event(message))

    async def send(self, channel_id: str, text: str) -> bool:
        """Post text to a Discord channel.

        Mentions in MUD text are rendered but never ping anyone.

        Returns:
            True if the message was posted
        """
        channel = self.get_channel(int(channel_id))
        try:
            if channel is None:
                channel = await self.fetch_channel(int(channel_id))
            await channel.send(text, allowed_mentions=discord.AllowedMentions.none())
        except discord.HTTPException as e:
            logger.error("Failed to send message to Discord", channel_id=channel_id, error=str(e))
            return False

        return True
