"""Main MUD Relay application."""

import asyncio
from typing import Optional

import structlog

from .api.health import HealthMonitor, HealthServer
from .chat.discord_client import RelayDiscordClient
from .config.models import Settings
from .network import ConnectionManager
from .relay import (
    ChannelMapping,
    ChannelRouter,
    MessageSanitizer,
    RateLimiter,
    RelayBridge,
)


class MudRelay:
    """Owns every relay component for the lifetime of the process."""

    def __init__(self, settings: Settings, discord_client: Optional[RelayDiscordClient] = None) -> None:
        """Initialize the relay."""
        self.settings = settings
        self.logger = structlog.get_logger()
        self.running = False
        self._shutdown_event = asyncio.Event()

        self.health = HealthMonitor()
        self.health_server = (
            HealthServer(self.health, host=settings.health.host, port=settings.health.port)
            if settings.health.enabled
            else None
        )

        self.router = ChannelRouter(
            ChannelMapping(world=c.mud, chat=c.discord) for c in settings.channels
        )

        self.discord = discord_client or RelayDiscordClient(
            channel_ids=self.router.chat_channel_ids(),
            health=self.health,
        )

        mud = settings.mud
        self.connection_manager = ConnectionManager(
            host=mud.host,
            port=mud.port,
            name=mud.name,
            health=self.health,
            auth_token=mud.auth_token,
            retry_delay=mud.retry_delay / 1000,
            retry_count=mud.retry_count,
            infinite_retries=mud.infinite_retries,
            heartbeat_interval=mud.heartbeat_interval,
            connection_timeout=mud.connect_timeout,
            max_frame_size=mud.max_frame_size,
        )

        self.bridge = RelayBridge(
            router=self.router,
            world=self.connection_manager,
            chat=self.discord,
            sanitizer=MessageSanitizer(
                max_length=settings.relay.largest_printable_string,
                remove_emoji=settings.relay.strip_emoji,
            ),
            rate_limiter=RateLimiter(settings.relay.rate_limit_per_channel),
            health=self.health,
        )

        self.connection_manager.on_frame = self.bridge.submit_frame
        self.health.connection_stats = self.connection_manager.get_stats
        self.discord.on_chat_event = self.bridge.submit_chat

        self._discord_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the relay service."""
        self.logger.info(
            "Starting MUD Relay",
            mud_name=self.settings.mud.name,
            mud_host=self.settings.mud.host,
            mud_port=self.settings.mud.port,
            channels=len(self.router),
        )

        self.running = True

        if self.health_server:
            await self.health_server.start()

        await self.bridge.start()

        self._discord_task = asyncio.create_task(self._run_discord())

        connected = await self.connection_manager.connect()
        if not connected:
            self.logger.error("Failed to connect to MUD")
            # Connection manager keeps retrying per its policy

        self.logger.info("MUD Relay started successfully")

    async def _run_discord(self):
        try:
            await self.discord.start(self.settings.discord.token)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error("Discord client stopped", error=str(e))
        finally:
            self.health.set_chat_connected(False)

    async def shutdown(self) -> None:
        """Shutdown the relay; in-flight messages are not flushed."""
        if not self.running:
            return

        self.logger.info("Shutting down MUD Relay...")
        self.running = False

        await self.connection_manager.disconnect()
        await self.bridge.stop()

        if not self.discord.is_closed():
            await self.discord.close()

        if self._discord_task:
            self._discord_task.cancel()
            try:
                await self._discord_task
            except asyncio.CancelledError:
                pass

        if self.health_server:
            await self.health_server.stop()

        self._shutdown_event.set()
        self.logger.info("MUD Relay shutdown complete")

    async def wait_for_shutdown(self) -> None:
        """Wait for the relay to shutdown."""
        await self._shutdown_event.wait()
