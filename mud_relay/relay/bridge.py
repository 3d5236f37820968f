"""Relay orchestration between the MUD connection and Discord.

Socket frames and Discord messages are submitted to a single queue and
processed one at a time by a dispatcher task, in arrival order.
"""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from mud_relay.models.frame import InboundWorldFrame, OutboundWorldFrame
from mud_relay.utils.logging import get_logger

from .rate_limiter import RateLimiter
from .router import ChannelRouter
from .sanitizer import MemberResolver, MessageSanitizer


logger = get_logger(__name__)


@dataclass(frozen=True)
class ChatEvent:
    """A Discord message, reduced to what the relay needs."""

    channel_id: str
    author_name: str
    content: str
    author_id: int = 0
    is_bot: bool = False
    resolve_member: MemberResolver | None = None


class WorldSender(Protocol):
    async def send_frame(self, frame: OutboundWorldFrame) -> bool: ...


class ChatSender(Protocol):
    async def send(self, channel_id: str, text: str) -> bool: ...


class RelayHealth(Protocol):
    def increment_world_to_chat(self) -> None: ...

    def increment_chat_to_world(self) -> None: ...


def format_world_message(frame: InboundWorldFrame) -> str:
    """Render a MUD frame as Discord text."""
    if frame.is_emote:
        return frame.message
    return f"{frame.name}: {frame.message}"


class RelayBridge:
    """Wires Discord events and MUD frames through the relay pipeline."""

    def __init__(
        self,
        router: ChannelRouter,
        world: WorldSender,
        chat: ChatSender,
        sanitizer: MessageSanitizer | None = None,
        rate_limiter: RateLimiter | None = None,
        health: RelayHealth | None = None,
    ):
        """Initialize the bridge.

        Args:
            router: Channel mappings
            world: MUD connection used for outbound frames
            chat: Discord client used for outbound messages
            sanitizer: Outbound text pipeline
            rate_limiter: Per-author throttle for MUD-bound messages
            health: Sink for relay counters
        """
        self.router = router
        self.world = world
        self.chat = chat
        self.sanitizer = sanitizer or MessageSanitizer()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.health = health

        self.events: asyncio.Queue = asyncio.Queue()
        self.running = False
        self._processing_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the dispatcher task."""
        self.running = True
        self._processing_task = asyncio.create_task(self._process_events())

    async def stop(self) -> None:
        """Stop the dispatcher; queued events are discarded."""
        self.running = False

        if self._processing_task:
            self._processing_task.cancel()
            try:
                await self._processing_task
            except asyncio.CancelledError:
                pass
            self._processing_task = None

    def submit_chat(self, event: ChatEvent) -> None:
        self.events.put_nowait(event)

    def submit_frame(self, frame: InboundWorldFrame) -> None:
        self.events.put_nowait(frame)

    async def _process_events(self):
        """Process queued events in order."""
        while self.running:
            try:
                event = await asyncio.wait_for(self.events.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                if isinstance(event, InboundWorldFrame):
                    await self.handle_world_frame(event)
                else:
                    await self.handle_chat_event(event)
            except Exception as e:
                logger.exception("Error processing relay event", error=str(e))
            finally:
                self.events.task_done()

    async def handle_chat_event(self, event: ChatEvent) -> bool:
        """Relay a Discord message to the MUD.

        Returns:
            True if a frame was written to the MUD
        """
        if not event.content or event.is_bot:
            return False

        message = self.sanitizer.sanitize(event.author_name, event.content, event.resolve_member)
        if message is None:
            logger.debug("Dropped empty or oversized message", channel_id=event.channel_id)
            return False

        world_channel = self.router.chat_to_world(event.channel_id)
        if world_channel is None:
            return False

        key = self.rate_limiter.make_key(world_channel, message.author)
        if not self.rate_limiter.allow(key):
            logger.debug(
                "Rate limit exceeded", author=message.author, channel=world_channel
            )
            return False

        frame = OutboundWorldFrame(channel=world_channel, name=message.author, message=message.text)
        if not await self.world.send_frame(frame):
            return False

        if self.health:
            self.health.increment_chat_to_world()
        return True

    async def handle_world_frame(self, frame: InboundWorldFrame) -> bool:
        """Relay a MUD frame to Discord.

        Returns:
            True if the message was posted to Discord
        """
        channel_id = self.router.world_to_chat(frame.channel)
        if channel_id is None:
            return False

        if not await self.chat.send(channel_id, format_world_message(frame)):
            return False

        if self.health:
            self.health.increment_world_to_chat()
        return True

    async def drain(self) -> None:
        """Wait until every queued event has been processed."""
        await self.events.join()
