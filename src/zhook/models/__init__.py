"""Data models for zhook.

Realtime messages:
    - ConnectionEvent: handshake confirmation with the assigned client identity
    - WebhookEvent: a relayed webhook call

REST API:
    - HookConfig / HookUpdate / RetryPolicy: what callers send
    - Hook: what the API returns

Persistence:
    - LoggedEvent: one line of an event log file
"""

from .base import HTTP_SCHEMES, WEBSOCKET_SCHEMES, url_problem, utc_timestamp
from .events import ConnectionEvent, LoggedEvent, WebhookEvent
from .hook import Hook, HookConfig, HookStatus, HookUpdate, RetryPolicy

__all__ = [
    # Helpers
    "HTTP_SCHEMES",
    "WEBSOCKET_SCHEMES",
    "url_problem",
    "utc_timestamp",
    # Realtime messages
    "ConnectionEvent",
    "WebhookEvent",
    # Hooks
    "Hook",
    "HookConfig",
    "HookStatus",
    "HookUpdate",
    "RetryPolicy",
    # Persistence
    "LoggedEvent",
]
