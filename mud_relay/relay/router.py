"""Channel routing between MUD channel tags and Discord channel ids."""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ChannelMapping:
    """A configured pairing of a MUD channel and a Discord channel."""

    world: str
    chat: str


class ChannelRouter:
    """Bidirectional lookup over a static, ordered list of mappings.

    Lookups are exact matches and the first matching mapping wins. A None
    result means the channel is not relayed.
    """

    def __init__(self, mappings: Iterable[ChannelMapping]):
        self._mappings: tuple[ChannelMapping, ...] = tuple(mappings)

    @property
    def mappings(self) -> tuple[ChannelMapping, ...]:
        return self._mappings

    def world_to_chat(self, world_channel: str) -> str | None:
        for mapping in self._mappings:
            if mapping.world == world_channel:
                return mapping.chat
        return None

    def chat_to_world(self, chat_channel: str) -> str | None:
        for mapping in self._mappings:
            if mapping.chat == chat_channel:
                return mapping.world
        return None

    def chat_channel_ids(self) -> list[str]:
        """Distinct Discord channel ids in configuration order."""
        seen: dict[str, None] = {}
        for mapping in self._mappings:
            seen.setdefault(mapping.chat, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self._mappings)
