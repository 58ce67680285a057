"""zhook: receive webhooks in real time, anywhere.

Client library for the zhook relay service. Webhook calls made to your
hooks are pushed to the client over a persistent realtime connection,
and hooks themselves are managed through the REST API.

Quick Start:
    from zhook import ZhookClient

    async with ZhookClient("your-client-key") as client:
        client.on_hook_called(lambda event: print(event.hook_id, event.payload))
        client.on_error(lambda error: print("zhook error:", error))

        hook = await client.create_hook(
            {"name": "orders", "url": "https://example.com/orders"}
        )

Components:
    - ZhookClient: facade over everything below
    - ConnectionStateMachine: connect, reconnect with backoff, close
    - EventDispatcher: decode frames and fan out to handlers
    - HookApi: hook CRUD over the REST API
    - EventLogger: persist received events as JSON lines

For more information, see: https://zhook.dev
"""

__version__ = "0.1.0"

# Client
from .client import ZhookClient

# Configuration
from .config import ClientConfig, LogLevel, Settings, settings

# Connection
from .connection import ConnectionState

# Event file logging
from .event_logger import EventLogger

# Exceptions
from .exceptions import (
    ApiError,
    ApiInvalidResponseError,
    ApiNetworkError,
    ApiRequestError,
    AuthenticationFailedError,
    ClientClosedError,
    ConnectionTimeoutError,
    EventLogError,
    InvalidConfigurationError,
    InvalidCredentialError,
    InvalidHandlerError,
    MaxReconnectAttemptsReachedError,
    MessageParseError,
    ReconnectionExhaustedError,
    TransportError,
    ZhookConnectionError,
    ZhookError,
)

# Logging
from .logging import ClientLogger, configure_logging, get_logger, logger

# Models
from .models import (
    ConnectionEvent,
    Hook,
    HookConfig,
    HookUpdate,
    LoggedEvent,
    RetryPolicy,
    WebhookEvent,
)

__all__ = [
    # Version
    "__version__",
    # Client
    "ZhookClient",
    "ConnectionState",
    # Configuration
    "ClientConfig",
    "LogLevel",
    "Settings",
    "settings",
    # Exceptions
    "ZhookError",
    "InvalidCredentialError",
    "InvalidConfigurationError",
    "InvalidHandlerError",
    "ClientClosedError",
    "ZhookConnectionError",
    "ConnectionTimeoutError",
    "TransportError",
    "AuthenticationFailedError",
    "MaxReconnectAttemptsReachedError",
    "ReconnectionExhaustedError",
    "MessageParseError",
    "ApiError",
    "ApiRequestError",
    "ApiNetworkError",
    "ApiInvalidResponseError",
    "EventLogError",
    # Logging
    "ClientLogger",
    "configure_logging",
    "get_logger",
    "logger",
    # Event file logging
    "EventLogger",
    # Models
    "ConnectionEvent",
    "WebhookEvent",
    "LoggedEvent",
    "Hook",
    "HookConfig",
    "HookUpdate",
    "RetryPolicy",
]
