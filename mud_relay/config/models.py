"""Configuration models for MUD Relay."""


from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class MudConfig(BaseModel):
    """MUD connection configuration."""

    name: str = "MUD"
    host: str = Field(validation_alias=AliasChoices("host", "ip"))
    port: int
    retry_delay: int = 10000  # milliseconds
    retry_count: int = 5
    infinite_retries: bool = False
    auth_token: str | None = None
    heartbeat_interval: float = 240.0  # seconds
    connect_timeout: float = 30.0  # seconds
    max_frame_size: int = 65536

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("auth_token")
    @classmethod
    def empty_token_is_unset(cls, v: str | None) -> str | None:
        return v or None


class DiscordConfig(BaseModel):
    """Discord bot configuration."""

    token: str = ""


class ChannelMappingConfig(BaseModel):
    """A MUD channel paired with a Discord channel id."""

    mud: str = Field(validation_alias=AliasChoices("mud", "world"))
    discord: str = Field(validation_alias=AliasChoices("discord", "chat"))

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("discord", mode="before")
    @classmethod
    def channel_id_as_string(cls, v):
        # YAML reads unquoted snowflakes as integers
        if isinstance(v, int):
            return str(v)
        return v


class RelayConfig(BaseModel):
    """Message relay behaviour."""

    rate_limit_per_channel: float = Field(10, gt=0)  # messages per second
    strip_emoji: bool = True
    largest_printable_string: int = 2048


class HealthConfig(BaseModel):
    """Health endpoint configuration."""

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 3000


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"
    file: str | None = None
    error_file: str | None = None
    max_size: int = 10485760  # 10MB
    backup_count: int = 7


class Settings(BaseModel):
    """Main settings configuration."""

    mud: MudConfig
    discord: DiscordConfig = Field(default_factory=DiscordConfig, validate_default=True)
    channels: list[ChannelMappingConfig] = Field(default_factory=list)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("discord")
    @classmethod
    def validate_discord_token(cls, v: DiscordConfig) -> DiscordConfig:
        """Validate that a Discord token is available."""
        if not v.token:
            raise ValueError("No Discord token provided (set DISCORD_TOKEN)")
        return v

    model_config = ConfigDict(populate_by_name=True)
