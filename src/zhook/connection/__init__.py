"""Realtime connection management.

- ConnectionStateMachine: connect, reconnect with backoff, close
- Transport / WebSocketTransport: the realtime transport seam
- Scheduler / AsyncioScheduler: cancellable timers
"""

from .machine import ConnectionStateMachine
from .state import (
    ConnectionState,
    PendingConnect,
    ReconnectState,
    build_realtime_url,
    compute_backoff_delay,
    is_auth_failure,
)
from .timers import AsyncioScheduler, Scheduler, TimerHandle
from .transport import Transport, TransportFactory, TransportListener, WebSocketTransport

__all__ = [
    "AsyncioScheduler",
    "ConnectionState",
    "ConnectionStateMachine",
    "PendingConnect",
    "ReconnectState",
    "Scheduler",
    "TimerHandle",
    "Transport",
    "TransportFactory",
    "TransportListener",
    "WebSocketTransport",
    "build_realtime_url",
    "compute_backoff_delay",
    "is_auth_failure",
]
