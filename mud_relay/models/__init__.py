"""Wire models for MUD Relay."""

from .frame import (
    FrameError,
    InboundWorldFrame,
    OutboundWorldFrame,
    decode_frame,
    encode_frame,
)

__all__ = [
    "FrameError",
    "InboundWorldFrame",
    "OutboundWorldFrame",
    "decode_frame",
    "encode_frame",
]
