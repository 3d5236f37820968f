"""Relay engine: routing, throttling and sanitizing between MUD and Discord."""

from .bridge import ChatEvent, RelayBridge, format_world_message
from .rate_limiter import RateLimiter
from .router import ChannelMapping, ChannelRouter
from .sanitizer import MessageSanitizer, SanitizedMessage

__all__ = [
    "ChatEvent",
    "RelayBridge",
    "format_world_message",
    "RateLimiter",
    "ChannelMapping",
    "ChannelRouter",
    "MessageSanitizer",
    "SanitizedMessage",
]
