"""Configuration loader for MUD Relay."""

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from .models import Settings


# Environment variables that override configuration keys
ENV_OVERRIDES = {
    "DISCORD_TOKEN": ("discord", "token"),
    "MUD_AUTH_TOKEN": ("mud", "auth_token"),
    "HEALTH_PORT": ("health", "port"),
    "LOG_LEVEL": ("logging", "level"),
}


def expand_env_vars(config: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(config, dict):
        result = {}
        for key, value in config.items():
            result[key] = expand_env_vars(value)
        return result
    elif isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    elif isinstance(config, str):
        # Check for environment variable pattern ${VAR:default}
        if config.startswith("${") and "}" in config:
            var_expr = config[2:config.index("}")]
            if ":" in var_expr:
                var_name, default_value = var_expr.split(":", 1)
                return os.environ.get(var_name, default_value)
            else:
                return os.environ.get(var_expr, config)
    return config


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Let well-known environment variables win over file values."""
    for var_name, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(var_name)
        if value:
            config.setdefault(section, {})
            if config[section] is None:
                config[section] = {}
            config[section][key] = value
    return config


def load_config(config_path: Path) -> Settings:
    """Load configuration from YAML file with environment variable expansion."""
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    # Expand environment variables
    config = apply_env_overrides(expand_env_vars(raw_config))

    # Create and validate settings
    try:
        return Settings(**config)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")
