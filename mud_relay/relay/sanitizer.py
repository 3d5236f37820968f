"""Text sanitizing for Discord messages relayed to the MUD.

All functions here are pure string transforms. Emoji matching is injected
as a callable so the rule set can be swapped in tests.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

import emoji


MENTION_PLACEHOLDER = "[mention removed]"

# Upper bound on cleaning passes for pathological input
MAX_CLEAN_PASSES = 8

MASS_MENTION_RE = re.compile(r"@(everyone|here)", re.IGNORECASE)
USER_MENTION_RE = re.compile(r"<@!?(\d+)>")
CUSTOM_EMOJI_RE = re.compile(r"<?a?:\w+:\d{18}>?")

# Maps a Discord user id to a display name, or None if unknown
MemberResolver = Callable[[int], str | None]

# Removes Unicode emoji from a string
EmojiStripper = Callable[[str], str]


def strip_unicode_emoji(text: str) -> str:
    return emoji.replace_emoji(text, replace="")


def strip_mass_mentions(text: str) -> str:
    """Replace @everyone and @here so they cannot ping anyone."""
    return MASS_MENTION_RE.sub(MENTION_PLACEHOLDER, text)


def resolve_mentions(text: str, resolver: MemberResolver | None = None) -> str:
    """Replace ``<@id>`` and ``<@!id>`` mentions with member names.

    Unknown members are rendered as ``@id``.
    """

    def replace(match: re.Match) -> str:
        user_id = match.group(1)
        name = resolver(int(user_id)) if resolver else None
        if not name:
            return f"@{user_id}"
        # A nickname could itself carry a mass mention
        return strip_mass_mentions(name)

    return USER_MENTION_RE.sub(replace, text)


def strip_custom_emoji(text: str) -> str:
    return CUSTOM_EMOJI_RE.sub("", text)


def strip_emoji(text: str, stripper: EmojiStripper = strip_unicode_emoji) -> str:
    """Remove Unicode emoji, then Discord custom emoji tokens."""
    return strip_custom_emoji(stripper(text))


@dataclass(frozen=True)
class SanitizedMessage:
    """Author and text ready to be sent to the MUD."""

    author: str
    text: str


class MessageSanitizer:
    """Applies the outbound sanitizing pipeline with configured options."""

    def __init__(
        self,
        max_length: int = 2048,
        remove_emoji: bool = True,
        emoji_stripper: EmojiStripper = strip_unicode_emoji,
    ):
        self.max_length = max_length
        self.remove_emoji = remove_emoji
        self.emoji_stripper = emoji_stripper

    def clean_text(self, text: str, resolver: MemberResolver | None = None) -> str:
        """Clean message text until another pass would not change it.

        Removing an emoji or expanding a mention can splice the surrounding
        text into a new token, e.g. "@every🎉one" or "<@1🎉23>", so a
        single pass is not stable.
        """
        for _ in range(MAX_CLEAN_PASSES):
            cleaned = self._clean_pass(text, resolver)
            if cleaned == text:
                break
            text = cleaned
        return text

    def _clean_pass(self, text: str, resolver: MemberResolver | None) -> str:
        if self.remove_emoji:
            text = strip_emoji(text, self.emoji_stripper)
        text = strip_mass_mentions(text)
        text = resolve_mentions(text, resolver)
        return strip_mass_mentions(text).strip()

    def clean_author(self, author: str) -> str:
        if self.remove_emoji:
            author = strip_emoji(author, self.emoji_stripper)
        return author.strip()

    def sanitize(
        self, author: str, text: str, resolver: MemberResolver | None = None
    ) -> SanitizedMessage | None:
        """Run the full pipeline.

        Returns:
            The cleaned message, or None if it should be dropped
        """
        # Length is judged on the raw text before mentions are expanded
        if len(text) > self.max_length:
            return None

        text = self.clean_text(text, resolver)
        author = self.clean_author(author)

        if not author or not text:
            return None

        return SanitizedMessage(author=author, text=text)
