"""Health check endpoint for monitoring relay status.

The relay core reports into a ``HealthMonitor``; ``HealthServer`` exposes
that state over HTTP for process supervisors and load balancers.
"""

import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from aiohttp import web
from aiohttp.web_request import Request

from mud_relay.utils.logging import get_logger


logger = get_logger(__name__)


@dataclass
class RelayCounters:
    """Messages relayed in each direction."""

    mud_to_discord: int = 0
    discord_to_mud: int = 0


@dataclass
class HealthMonitor:
    """Connection flags and relay counters reported by the relay core."""

    mud_connected: bool = False
    discord_connected: bool = False
    messages: RelayCounters = field(default_factory=RelayCounters)
    start_time: float = field(default_factory=time.time)
    # Returns the MUD connection's ConnectionStats dataclass
    connection_stats: Callable[[], Any] | None = None

    def set_world_connected(self, connected: bool) -> None:
        self.mud_connected = connected

    def set_chat_connected(self, connected: bool) -> None:
        self.discord_connected = connected

    def increment_world_to_chat(self) -> None:
        self.messages.mud_to_discord += 1

    def increment_chat_to_world(self) -> None:
        self.messages.discord_to_mud += 1

    @property
    def healthy(self) -> bool:
        return self.mud_connected and self.discord_connected

    def snapshot(self) -> dict[str, Any]:
        """Build the health report body."""
        return {
            "status": "healthy" if self.healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": int(time.time() - self.start_time),
            "connections": {
                "mud": self.mud_connected,
                "discord": self.discord_connected,
            },
            "messages": {
                "mud_to_discord": self.messages.mud_to_discord,
                "discord_to_mud": self.messages.discord_to_mud,
            },
            "connection": asdict(self.connection_stats()) if self.connection_stats else None,
        }


class HealthServer:
    """HTTP server exposing ``GET /health``."""

    def __init__(self, monitor: HealthMonitor, host: str = "0.0.0.0", port: int = 3000):
        """Initialize health server.

        Args:
            monitor: Health state to report
            host: Interface to bind
            port: Port to listen on
        """
        self.monitor = monitor
        self.host = host
        self.port = port
        self.app = self.create_app()
        self.runner: web.AppRunner | None = None
        self.site: web.TCPSite | None = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/health", self.handle_health)
        return app

    async def start(self):
        """Start serving health requests."""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.host, self.port)
        await self.site.start()

        logger.info(
            "Health check endpoint available",
            url=f"http://{self.host}:{self.port}/health",
        )

    async def stop(self):
        """Stop the health server."""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            self.site = None

    async def handle_health(self, request: Request) -> web.Response:
        """Handle health check request."""
        status = 200 if self.monitor.healthy else 503
        return web.json_response(self.monitor.snapshot(), status=status)
