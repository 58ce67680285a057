"""Configuration management for zhook."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

from .constants import (
    DEFAULT_API_URL,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_MAX_RECONNECT_ATTEMPTS,
    DEFAULT_RECONNECT_DELAY_MS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_WS_URL,
    MIN_RECONNECT_DELAY_MS,
)


class LogLevel(str, Enum):
    """Client diagnostic verbosity, ordered from quietest to loudest."""

    SILENT = "silent"
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"

    @property
    def rank(self) -> int:
        """Position in the silent < error < warn < info < debug ordering."""
        return list(LogLevel).index(self)

    def allows(self, level: LogLevel) -> bool:
        """Whether a message at ``level`` passes when configured at this level."""
        if level is LogLevel.SILENT:
            return False
        return level.rank <= self.rank


class ClientConfig(BaseModel):
    """Validated, immutable configuration of one client.

    Built by ``validation.validate_options``; never mutated afterwards.

    Attributes:
        ws_url: Realtime endpoint (ws:// or wss://).
        api_url: REST endpoint (http:// or https://).
        max_reconnect_attempts: Reconnect attempts before giving up.
        reconnect_delay: Base reconnect delay in milliseconds.
        log_level: Client log verbosity.
        connect_timeout: Seconds to wait for the transport to open.
        request_timeout: Seconds to wait for a REST response.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ws_url: str = Field(default=DEFAULT_WS_URL, description="Realtime endpoint URL")
    api_url: str = Field(default=DEFAULT_API_URL, description="REST endpoint URL")
    max_reconnect_attempts: int = Field(
        default=DEFAULT_MAX_RECONNECT_ATTEMPTS,
        ge=0,
        description="Maximum reconnect attempts after a dropped connection",
    )
    reconnect_delay: int = Field(
        default=DEFAULT_RECONNECT_DELAY_MS,
        ge=MIN_RECONNECT_DELAY_MS,
        description="Base reconnect delay in milliseconds (doubles each attempt)",
    )
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Client log verbosity")
    connect_timeout: float = Field(
        default=DEFAULT_CONNECT_TIMEOUT,
        gt=0,
        description="Seconds to wait for the realtime connection to open",
    )
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0,
        description="Seconds to wait for a REST API response",
    )


class Settings(BaseSettings):
    """zhook defaults loaded from environment variables.

    Every setting can be overridden with the ZHOOK_ prefix, for example:
        ZHOOK_WS_URL=ws://localhost:8080/events
        ZHOOK_LOG_LEVEL=debug

    Options passed explicitly to ``ZhookClient`` take precedence.
    """

    client_key: str | None = Field(
        default=None,
        description="Client key used by the examples when none is passed",
    )
    ws_url: str = Field(default=DEFAULT_WS_URL, description="Realtime endpoint URL")
    api_url: str = Field(default=DEFAULT_API_URL, description="REST endpoint URL")
    max_reconnect_attempts: int = Field(
        default=DEFAULT_MAX_RECONNECT_ATTEMPTS,
        ge=0,
        description="Maximum reconnect attempts",
    )
    reconnect_delay: int = Field(
        default=DEFAULT_RECONNECT_DELAY_MS,
        ge=MIN_RECONNECT_DELAY_MS,
        description="Base reconnect delay in milliseconds",
    )
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Client log verbosity")
    connect_timeout: float = Field(
        default=DEFAULT_CONNECT_TIMEOUT,
        gt=0,
        description="Seconds to wait for the realtime connection to open",
    )
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0,
        description="Seconds to wait for a REST API response",
    )

    # Logging output (see zhook.logging.configure_logging)
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format",
    )

    model_config = {
        "env_prefix": "ZHOOK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()
