"""Configuration management for MUD Relay."""

from .loader import load_config
from .models import (
    ChannelMappingConfig,
    DiscordConfig,
    HealthConfig,
    MudConfig,
    RelayConfig,
    Settings,
)


__all__ = [
    "ChannelMappingConfig",
    "DiscordConfig",
    "HealthConfig",
    "MudConfig",
    "RelayConfig",
    "Settings",
    "load_config",
]
