"""Newline-delimited JSON protocol for the MUD relay socket.

This module handles framing of the JSON line protocol spoken by the MUD's
relay port. Every frame is a single JSON object followed by a newline.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from mud_relay.models.frame import (
    FRAME_TERMINATOR,
    FrameError,
    InboundWorldFrame,
    OutboundWorldFrame,
    decode_frame,
    encode_frame,
)
from mud_relay.utils.logging import get_logger


logger = get_logger(__name__)


class ProtocolError(Exception):
    """Base exception for relay protocol errors."""


@dataclass
class FeedResult:
    """Outcome of feeding one chunk of socket data."""

    frames: list[InboundWorldFrame]
    errors: list[FrameError]


class JSONLineProtocol:
    """Buffered line splitter and frame decoder.

    Socket reads do not respect frame boundaries, so a trailing partial line
    stays buffered until its terminator arrives.
    """

    def __init__(self, max_frame_size: int = 65536):
        self.max_frame_size = max_frame_size
        self._buffer = bytearray()

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def feed_data(self, data: bytes) -> FeedResult:
        """Feed raw bytes and return every complete frame they finish.

        A malformed line is reported in ``errors`` and skipped; decoding
        continues with the next line.
        """
        result = FeedResult(frames=[], errors=[])
        self._buffer.extend(data)

        while True:
            index = self._buffer.find(FRAME_TERMINATOR)
            if index < 0:
                break

            line = bytes(self._buffer[:index]).strip()
            del self._buffer[: index + 1]

            if not line:
                continue

            try:
                result.frames.append(decode_frame(line))
            except FrameError as e:
                result.errors.append(e)

        if self.buffered > self.max_frame_size:
            result.errors.append(
                FrameError(f"Frame exceeds {self.max_frame_size} bytes without terminator")
            )
            self._buffer.clear()

        return result

    def encode(self, frame: OutboundWorldFrame) -> bytes:
        return encode_frame(frame)

    def reset(self):
        """Reset the protocol state.

        This should be called when the connection is reset or closed.
        """
        self._buffer.clear()


class JSONLineStreamProtocol(asyncio.Protocol):
    """Asyncio protocol implementation for the JSON line stream.

    Callbacks run synchronously inside the event loop, so frames reach the
    consumer in arrival order.
    """

    def __init__(
        self,
        on_frame: Callable[[InboundWorldFrame], None] | None = None,
        on_connection_lost: Callable[[Exception | None], None] | None = None,
        max_frame_size: int = 65536,
    ):
        """Initialize the stream protocol.

        Args:
            on_frame: Callback for each decoded frame
            on_connection_lost: Callback for connection loss, receives the
                error or None on a clean close
            max_frame_size: Largest allowed unterminated line in bytes
        """
        self.codec = JSONLineProtocol(max_frame_size=max_frame_size)
        self.transport: asyncio.Transport | None = None
        self.on_frame = on_frame
        self.on_connection_lost = on_connection_lost
        self.bytes_received = 0
        self.malformed_frames = 0

    def connection_made(self, transport: asyncio.Transport):
        """Called when connection is established."""
        self.transport = transport

    def data_received(self, data: bytes):
        """Called when data is received from the network."""
        self.bytes_received += len(data)
        result = self.codec.feed_data(data)

        for error in result.errors:
            self.malformed_frames += 1
            logger.error("Failed to parse frame from MUD", error=str(error))

        if self.on_frame:
            for frame in result.frames:
                self.on_frame(frame)

    def eof_received(self) -> bool:
        """Let the transport close itself when the MUD half-closes."""
        return False

    def connection_lost(self, exc: Exception | None):
        """Called when connection is lost."""
        self.codec.reset()
        self.transport = None

        if self.on_connection_lost:
            self.on_connection_lost(exc)

    def send_frame(self, frame: OutboundWorldFrame) -> None:
        """Send a frame through the connection.

        Raises:
            ProtocolError: If not connected
        """
        if not self.transport or self.transport.is_closing():
            raise ProtocolError("Not connected")

        self.transport.write(self.codec.encode(frame))

    def close(self):
        """Close the connection."""
        if self.transport:
            self.transport.close()
