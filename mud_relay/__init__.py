"""MUD Relay - Discord to MUD chat bridge service."""

__version__ = "0.1.0"

from typing import Final


# Wire protocol constants
CONTROL_NAME: Final[str] = "bot"
AUTH_CHANNEL: Final[str] = "auth"
HEARTBEAT_CHANNEL: Final[str] = "heartbeat"
HEARTBEAT_MESSAGE: Final[str] = "ping"
