"""Sink configuration: the immutable SinkConfig and environment-driven Settings."""

import json
from functools import lru_cache
from typing import Annotated

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from slack_log_sink.errors import ConfigurationError
from slack_log_sink.models.log_record import LogLevel

# "minimum" admits every level, "maximum" admits Fatal only
_LEVEL_ALIASES = {"minimum": LogLevel.VERBOSE, "maximum": LogLevel.FATAL}


class SinkConfig(BaseModel):
    """Options fixed at sink creation and shared read-only by every flush."""

    model_config = ConfigDict(frozen=True)

    webhook_url: str
    channel: str | None = None
    username: str | None = None
    icon: str | None = None
    properties: tuple[str, ...] = ()  # Record properties surfaced as extra fields
    tidy_stack_traces: bool = False
    minimum_level: LogLevel = LogLevel.VERBOSE

    @field_validator("properties", mode="before")
    @classmethod
    def _dedupe_properties(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(dict.fromkeys(value))


def ensure_webhook_url(config: SinkConfig) -> None:
    """Raise ConfigurationError if the webhook URL is missing or blank."""
    if not config.webhook_url or not config.webhook_url.strip():
        raise ConfigurationError("webhook_url must be a non-empty URL")


class Settings(BaseSettings):
    """Sink settings loaded from SLACK_SINK_* environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="SLACK_SINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Webhook
    webhook_url: str = ""
    channel: str | None = None
    username: str | None = None
    icon: str | None = None

    # Formatting
    properties: Annotated[list[str], NoDecode] = []  # JSON array or comma-separated names
    tidy_stack_traces: bool = False
    minimum_level: LogLevel = LogLevel.VERBOSE

    # Batching
    batch_size: int = 50
    flush_interval: float = 5.0
    queue_limit: int | None = None  # None keeps the buffer unbounded
    http_timeout: float = 10.0

    # Diagnostics for the sink itself
    log_level: str = "INFO"

    @field_validator("properties", mode="before")
    @classmethod
    def _split_properties(cls, value):
        if not isinstance(value, str):
            return value
        value = value.strip()
        if value.startswith("["):
            return json.loads(value)
        return [name.strip() for name in value.split(",") if name.strip()]

    @field_validator("minimum_level", mode="before")
    @classmethod
    def _parse_level_name(cls, value):
        if not isinstance(value, str):
            return value
        value = value.strip()
        if value.isdigit():
            return int(value)
        if value.lower() in _LEVEL_ALIASES:
            return _LEVEL_ALIASES[value.lower()]
        try:
            return LogLevel[value.upper()]
        except KeyError:
            raise ValueError(f"unknown log level: {value!r}") from None

    def to_sink_config(self) -> SinkConfig:
        """Build the immutable SinkConfig from these settings."""
        return SinkConfig(
            webhook_url=self.webhook_url,
            channel=self.channel,
            username=self.username,
            icon=self.icon,
            properties=self.properties,
            tidy_stack_traces=self.tidy_stack_traces,
            minimum_level=self.minimum_level,
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings. Lazy initialization to avoid import-time errors."""
    return Settings()
