"""Pytest configuration and fixtures for MUD Relay tests."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from mud_relay.api.health import HealthMonitor
from mud_relay.relay.router import ChannelMapping, ChannelRouter
from tests.fixtures.fake_transport import FakeTransport


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def health():
    return HealthMonitor()


@pytest.fixture
def channel_router():
    return ChannelRouter(
        [
            ChannelMapping(world="town", chat="100"),
            ChannelMapping(world="gossip", chat="200"),
        ]
    )


@pytest.fixture
def mock_chat():
    """Mock Discord sender."""
    chat = MagicMock()
    chat.send = AsyncMock(return_value=True)
    return chat


@pytest.fixture
def mock_world():
    """Mock MUD connection."""
    world = MagicMock()
    world.send_frame = AsyncMock(return_value=True)
    return world


@pytest.fixture
def config_data():
    """Raw configuration mapping as read from YAML."""
    return {
        "mud": {
            "name": "TestMUD",
            "host": "127.0.0.1",
            "port": 4000,
            "retry_delay": 5000,
            "retry_count": 3,
        },
        "discord": {"token": "discord-token"},
        "channels": [
            {"mud": "town", "discord": "100"},
            {"mud": "gossip", "discord": 200},
        ],
    }


@pytest.fixture
def temp_config_file(tmp_path, config_data):
    """Create temporary config file for testing."""
    import yaml

    config_file = tmp_path / "config.yaml"
    with open(config_file, "w") as f:
        yaml.dump(config_data, f)

    return config_file


# Markers for test organization
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external resources"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that use local sockets"
    )
