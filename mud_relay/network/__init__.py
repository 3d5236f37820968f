"""Network layer for MUD Relay."""

from .protocol import (
    FeedResult,
    JSONLineProtocol,
    JSONLineStreamProtocol,
    ProtocolError,
)
from .connection import (
    ConnectionManager,
    ConnectionState,
    ConnectionStats,
)

__all__ = [
    "FeedResult",
    "JSONLineProtocol",
    "JSONLineStreamProtocol",
    "ProtocolError",
    "ConnectionManager",
    "ConnectionState",
    "ConnectionStats",
]
