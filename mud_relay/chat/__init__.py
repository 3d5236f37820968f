"""Chat platform adapters for MUD Relay."""

from .discord_client import RelayDiscordClient, member_resolver, to_chat_event

__all__ = [
    "RelayDiscordClient",
    "member_resolver",
    "to_chat_event",
]
