"""Connection management for the MUD relay socket.

This module owns the single TCP connection to the MUD's relay port,
including authentication, heartbeats and the reconnection policy.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from mud_relay.models.frame import InboundWorldFrame, OutboundWorldFrame
from mud_relay.utils.logging import get_logger

from .protocol import JSONLineStreamProtocol, ProtocolError


logger = get_logger(__name__)


class ConnectionState(Enum):
    """Connection state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RETRYING = "retrying"


class ConnectionHealth(Protocol):
    """Sink for connectivity changes."""

    def set_world_connected(self, connected: bool) -> None: ...


@dataclass
class ConnectionStats:
    """Connection statistics tracking."""

    frames_sent: int = 0
    frames_received: int = 0
    malformed_frames: int = 0
    bytes_received: int = 0
    connection_time: float = 0
    reconnect_count: int = 0
    last_error: str | None = None


class ConnectionManager:
    """Manages the MUD connection with heartbeat and reconnection.

    A clean close always schedules one reconnect after ``retry_delay``. An
    errored close or failed attempt counts against ``retry_count`` unless
    ``infinite_retries`` is set.
    """

    def __init__(
        self,
        host: str,
        port: int,
        name: str = "MUD",
        on_frame: Callable[[InboundWorldFrame], None] | None = None,
        health: ConnectionHealth | None = None,
        auth_token: str | None = None,
        retry_delay: float = 10.0,
        retry_count: int = 5,
        infinite_retries: bool = False,
        heartbeat_interval: float = 240.0,
        connection_timeout: float = 30.0,
        max_frame_size: int = 65536,
    ):
        """Initialize the connection manager.

        Args:
            host: MUD relay host
            port: MUD relay port
            name: MUD name used in log messages
            on_frame: Callback for received frames
            health: Sink notified of connectivity changes
            auth_token: Shared secret sent after connecting, if set
            retry_delay: Seconds to wait before reconnecting
            retry_count: Consecutive failed attempts before giving up
            infinite_retries: Never give up reconnecting after errors
            heartbeat_interval: Seconds between heartbeat frames
            connection_timeout: Seconds to wait for connection
            max_frame_size: Largest allowed unterminated line in bytes
        """
        self.host = host
        self.port = port
        self.name = name
        self.on_frame = on_frame
        self.health = health
        self.auth_token = auth_token
        self.retry_delay = retry_delay
        self.retry_count = retry_count
        self.infinite_retries = infinite_retries
        self.heartbeat_interval = heartbeat_interval
        self.connection_timeout = connection_timeout
        self.max_frame_size = max_frame_size

        self.state = ConnectionState.DISCONNECTED
        self.retries = 0
        self.protocol: JSONLineStreamProtocol | None = None
        self.transport: asyncio.Transport | None = None
        self.stats = ConnectionStats()

        self._reconnect_task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._closing = False
        # Bumped by disconnect() so in-flight attempts know they are stale
        self._generation = 0

    async def connect(self) -> bool:
        """Establish connection to the MUD.

        Returns:
            True if connection was successful
        """
        if self.state not in (ConnectionState.DISCONNECTED, ConnectionState.RETRYING):
            return False

        self._set_state(ConnectionState.CONNECTING)
        generation = self._generation

        protocol = JSONLineStreamProtocol(
            on_frame=self._handle_frame,
            on_connection_lost=self._handle_connection_lost,
            max_frame_size=self.max_frame_size,
        )

        try:
            loop = asyncio.get_event_loop()
            transport, _ = await asyncio.wait_for(
                loop.create_connection(lambda: protocol, self.host, self.port),
                timeout=self.connection_timeout,
            )
        except (asyncio.TimeoutError, OSError, ConnectionError) as e:
            if generation != self._generation:
                return False

            self.stats.last_error = str(e) or type(e).__name__
            logger.error(
                "Error connecting to MUD",
                mud=self.name,
                host=self.host,
                port=self.port,
                error=self.stats.last_error,
            )
            self._report(False)
            self._handle_error()
            return False

        if generation != self._generation:
            # disconnect() ran while the attempt was pending
            protocol.on_connection_lost = None
            transport.close()
            return False

        self.protocol = protocol
        self.transport = transport
        self.retries = 0
        self.stats.connection_time = time.time()

        self._set_state(ConnectionState.CONNECTED)
        logger.info("Connected to MUD", mud=self.name, host=self.host, port=self.port)
        self._report(True)

        if self.auth_token:
            if await self.send_frame(OutboundWorldFrame.auth(self.auth_token)):
                logger.info("Authentication token sent to MUD")

        self._start_heartbeat()

        return True

    async def disconnect(self):
        """Disconnect from the MUD without scheduling a reconnect.

        A connection attempt still in progress is abandoned when it completes.
        """
        self._closing = True
        self._generation += 1

        if self._reconnect_task:
            self._reconnect_task.cancel()
            self._reconnect_task = None

        self._stop_heartbeat()

        if self.protocol:
            # Detach first: connection_lost arrives after this returns
            self.protocol.on_connection_lost = None
            self.protocol.close()
            self.protocol = None
            self.transport = None

        self._report(False)
        self._set_state(ConnectionState.DISCONNECTED)
        self._closing = False

    async def send_frame(self, frame: OutboundWorldFrame) -> bool:
        """Send a frame through the current connection.

        Frames are never queued; sending while disconnected drops the frame.

        Args:
            frame: Frame to send

        Returns:
            True if frame was written to the socket
        """
        if self.state != ConnectionState.CONNECTED or not self.protocol:
            logger.warning("Not connected to MUD, dropping frame", channel=frame.channel)
            return False

        try:
            self.protocol.send_frame(frame)
        except ProtocolError as e:
            logger.warning("Failed to send frame", channel=frame.channel, error=str(e))
            return False

        self.stats.frames_sent += 1
        return True

    def is_connected(self) -> bool:
        """Check if currently connected."""
        return self.state == ConnectionState.CONNECTED

    def heartbeat_active(self) -> bool:
        return self._heartbeat_task is not None and not self._heartbeat_task.done()

    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    def get_stats(self) -> ConnectionStats:
        """Get connection statistics."""
        if self.protocol:
            self.stats.bytes_received = self.protocol.bytes_received
            self.stats.malformed_frames = self.protocol.malformed_frames
        return self.stats

    def _set_state(self, state: ConnectionState):
        """Update connection state."""
        if state != self.state:
            logger.debug("Connection state changed", old=self.state.value, new=state.value)
        self.state = state

    def _report(self, connected: bool):
        if self.health:
            self.health.set_world_connected(connected)

    def _handle_frame(self, frame: InboundWorldFrame):
        """Handle received frame from protocol."""
        self.stats.frames_received += 1

        if self.on_frame:
            self.on_frame(frame)

    def _handle_connection_lost(self, exc: Exception | None):
        """Handle connection loss from protocol."""
        if self.protocol:
            self.stats.bytes_received = self.protocol.bytes_received
            self.stats.malformed_frames = self.protocol.malformed_frames

        self._stop_heartbeat()
        self.protocol = None
        self.transport = None

        if self._closing:
            return

        logger.info("Disconnected from MUD", mud=self.name, host=self.host, port=self.port)
        self._report(False)

        if exc is None:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.info("Reconnecting...", delay=self.retry_delay)
            self._schedule_reconnect()
        else:
            self.stats.last_error = str(exc) or type(exc).__name__
            logger.error("Error received from MUD", error=self.stats.last_error)
            self._handle_error()

    def _handle_error(self):
        """Apply the retry policy after a connection error."""
        self.retries += 1

        if self.infinite_retries:
            logger.info("Retrying connection", retry=self.retries)
        elif self.retries >= self.retry_count:
            logger.error(
                "Max retries reached. Stopping reconnection attempts.",
                max_retries=self.retry_count,
            )
            self.retries = 0
            self._set_state(ConnectionState.DISCONNECTED)
            return
        else:
            logger.info("Retrying connection", retry=self.retries, max_retries=self.retry_count)

        self._set_state(ConnectionState.RETRYING)
        self._schedule_reconnect()

    def _schedule_reconnect(self):
        """Schedule one reconnection attempt after the retry delay."""
        if self._closing or self.reconnect_pending():
            return

        self.stats.reconnect_count += 1

        async def reconnect():
            await asyncio.sleep(self.retry_delay)
            self._reconnect_task = None

            if not self._closing:
                await self.connect()

        self._reconnect_task = asyncio.create_task(reconnect())

    def _start_heartbeat(self):
        """Start heartbeat task."""
        self._stop_heartbeat()

        async def heartbeat():
            while self.is_connected():
                await asyncio.sleep(self.heartbeat_interval)

                if not self.is_connected():
                    break

                if await self.send_frame(OutboundWorldFrame.heartbeat()):
                    logger.info("Heartbeat sent to MUD")

        self._heartbeat_task = asyncio.create_task(heartbeat())

    def _stop_heartbeat(self):
        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
