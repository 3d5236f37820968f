"""World server frame models and validation.

This module defines the JSON frames exchanged with the MUD over the relay
socket. Each frame is a single JSON object terminated by a newline.
"""

import json
from dataclasses import asdict, dataclass
from typing import Any

from mud_relay import (
    AUTH_CHANNEL,
    CONTROL_NAME,
    HEARTBEAT_CHANNEL,
    HEARTBEAT_MESSAGE,
)


FRAME_TERMINATOR = b"\n"


class FrameError(Exception):
    """Raised when a frame cannot be decoded or fails validation."""


@dataclass(frozen=True)
class InboundWorldFrame:
    """Chat line received from the MUD.

    An emoted frame is rendered without the speaker's name prefix.
    """

    channel: str
    name: str
    message: str
    emoted: int = 0

    @property
    def is_emote(self) -> bool:
        return self.emoted == 1

    @classmethod
    def from_dict(cls, data: Any) -> "InboundWorldFrame":
        """Create a frame from a decoded JSON object.

        Raises:
            FrameError: If required fields are missing or have the wrong type
        """
        if not isinstance(data, dict):
            raise FrameError(f"Frame must be a JSON object, got {type(data).__name__}")

        channel = data.get("channel")
        message = data.get("message")
        name = data.get("name", "")
        emoted = data.get("emoted", 0)

        if not isinstance(channel, str) or not channel:
            raise FrameError("Frame requires a channel")
        if not isinstance(message, str):
            raise FrameError("Frame requires a message")
        if not isinstance(name, str):
            raise FrameError("Frame name must be a string")
        # bool is an int subclass; true/false are not valid emote flags
        if isinstance(emoted, bool) or emoted not in (0, 1):
            raise FrameError(f"Invalid emoted flag: {emoted!r}")

        return cls(channel=channel, name=name, message=message, emoted=emoted)


@dataclass(frozen=True)
class OutboundWorldFrame:
    """Frame written to the MUD, either chat content or a control frame."""

    channel: str
    name: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @property
    def is_control(self) -> bool:
        return self.channel in (AUTH_CHANNEL, HEARTBEAT_CHANNEL)

    @classmethod
    def auth(cls, token: str) -> "OutboundWorldFrame":
        """Build the authentication control frame."""
        return cls(channel=AUTH_CHANNEL, name=CONTROL_NAME, message=token)

    @classmethod
    def heartbeat(cls) -> "OutboundWorldFrame":
        """Build the heartbeat control frame."""
        return cls(channel=HEARTBEAT_CHANNEL, name=CONTROL_NAME, message=HEARTBEAT_MESSAGE)


def encode_frame(frame: OutboundWorldFrame) -> bytes:
    """Serialize a frame as one newline-terminated JSON line."""
    return json.dumps(frame.to_dict(), ensure_ascii=False).encode("utf-8") + FRAME_TERMINATOR


def decode_frame(line: bytes) -> InboundWorldFrame:
    """Parse one line (without terminator) into an inbound frame.

    Raises:
        FrameError: If the line is not valid JSON or not a valid frame
    """
    try:
        data = json.loads(line.decode("utf-8", errors="replace"))
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, oversized integers and deep nesting
        raise FrameError(f"Invalid JSON: {e}") from e

    return InboundWorldFrame.from_dict(data)
