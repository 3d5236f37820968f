"""End-to-end relay tests against a local fake MUD server."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from mud_relay.app import MudRelay
from mud_relay.config.models import Settings
from mud_relay.network import ConnectionState
from mud_relay.relay.bridge import ChatEvent


class FakeMud:
    """Accepts relay connections and records received frames."""

    def __init__(self):
        self.received: asyncio.Queue = asyncio.Queue()
        self.writers: list[asyncio.StreamWriter] = []
        self.connected = asyncio.Event()
        self.server: asyncio.AbstractServer | None = None

    async def start(self) -> int:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.writers.append(writer)
        self.connected.set()
        while line := await reader.readline():
            await self.received.put(json.loads(line))

    async def send(self, payload: bytes):
        writer = self.writers[-1]
        writer.write(payload)
        await writer.drain()

    async def next_frame(self) -> dict:
        return await asyncio.wait_for(self.received.get(), timeout=2.0)

    async def stop(self):
        for writer in self.writers:
            writer.close()
        if self.server:
            self.server.close()
            await self.server.wait_closed()


def fake_discord():
    client = MagicMock()
    client.send = AsyncMock(return_value=True)
    client.start = AsyncMock()
    client.close = AsyncMock()
    client.is_closed = MagicMock(return_value=False)
    return client


async def wait_until(condition, timeout: float = 2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest_asyncio.fixture
async def mud():
    server = FakeMud()
    yield server
    await server.stop()


@pytest_asyncio.fixture
async def relay(mud):
    port = await mud.start()
    settings = Settings(
        mud={
            "name": "FakeMUD",
            "host": "127.0.0.1",
            "port": port,
            "retry_delay": 20,
            "auth_token": "secret",
        },
        discord={"token": "discord-token"},
        channels=[{"mud": "town", "discord": "100"}],
        health={"enabled": False},
    )
    app = MudRelay(settings, discord_client=fake_discord())
    await app.start()
    yield app
    await app.shutdown()


@pytest.mark.integration
class TestRelayEndToEnd:
    """Relay traffic through a real socket."""

    @pytest.mark.asyncio
    async def test_auth_sent_on_connect(self, relay, mud):
        frame = await mud.next_frame()

        assert frame == {"channel": "auth", "name": "bot", "message": "secret"}
        assert relay.connection_manager.state == ConnectionState.CONNECTED
        assert relay.health.mud_connected is True

    @pytest.mark.asyncio
    async def test_mud_to_discord(self, relay, mud):
        await mud.next_frame()

        await mud.send(
            b'{"channel": "town", "name": "Alice", "message": "hi", "emoted": 0}\n'
            b'{"channel": "ooc", "name": "Bob", "message": "lost", "emoted": 0}\n'
            b'{"channel": "town", "name": "Alice", "message": "waves", "emoted": 1}\n'
        )

        await wait_until(lambda: relay.discord.send.await_count == 2)
        sent = [call.args for call in relay.discord.send.await_args_list]
        assert sent == [("100", "Alice: hi"), ("100", "waves")]
        assert relay.health.messages.mud_to_discord == 2

    @pytest.mark.asyncio
    async def test_discord_to_mud(self, relay, mud):
        await mud.next_frame()

        relay.discord.on_chat_event(
            ChatEvent(channel_id="100", author_name="Carol", content="@here hello")
        )

        frame = await mud.next_frame()
        assert frame == {"channel": "town", "name": "Carol", "message": "[mention removed] hello"}
        assert relay.health.messages.discord_to_mud == 1

    @pytest.mark.asyncio
    async def test_reconnects_after_clean_close(self, relay, mud):
        await mud.next_frame()
        first = mud.writers[0]

        first.close()
        await wait_until(lambda: len(mud.writers) == 2)

        frame = await mud.next_frame()
        assert frame["channel"] == "auth"
        await wait_until(relay.connection_manager.is_connected)

    @pytest.mark.asyncio
    async def test_health_reports_connection_stats(self, relay, mud):
        await mud.next_frame()

        await mud.send(b"not json\n")
        await wait_until(lambda: relay.connection_manager.get_stats().malformed_frames == 1)

        connection = relay.health.snapshot()["connection"]
        assert connection["frames_sent"] == 1
        assert connection["malformed_frames"] == 1
