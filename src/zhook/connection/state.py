"""Connection lifecycle states and the reconnection policy.

Backoff for reconnect attempt ``n`` (1-indexed) with base delay ``d``:

    exponential = d * 2 ** (n - 1)
    delay = max(100ms, exponential +/- up to 25% of exponential)
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..constants import (
    AUTH_FAILURE_CLOSE_CODES,
    AUTH_FAILURE_REASON_MARKERS,
    CLIENT_KEY_PARAM,
    MIN_RECONNECT_DELAY_MS,
    RECONNECT_JITTER_RATIO,
)
from .timers import TimerHandle


class ConnectionState(str, Enum):
    """Lifecycle state of the realtime connection.

    ``CLOSED`` is terminal: a closed client never connects again.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


@dataclass
class ReconnectState:
    """Attempt counter and pending timer for automatic reconnection."""

    attempts: int = 0
    timer: TimerHandle | None = None

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def reset(self) -> None:
        self.attempts = 0
        self.cancel_timer()


@dataclass
class PendingConnect:
    """An in-flight connection attempt and its timeout."""

    future: asyncio.Future[None]
    timeout: TimerHandle | None = field(default=None)

    def _cancel_timeout(self) -> None:
        if self.timeout is not None:
            self.timeout.cancel()
            self.timeout = None

    def resolve(self) -> None:
        self._cancel_timeout()
        if not self.future.done():
            self.future.set_result(None)

    def reject(self, error: BaseException) -> None:
        self._cancel_timeout()
        if not self.future.done():
            self.future.set_exception(error)


def compute_backoff_delay(
    attempt: int,
    base_delay: int,
    random_source: Callable[[], float] = random.random,
) -> float:
    """Delay in milliseconds before reconnect ``attempt``.

    Args:
        attempt: 1-indexed reconnect attempt number.
        base_delay: Base delay in milliseconds.
        random_source: Returns a float in [0, 1); injectable for tests.

    Returns:
        The jittered delay, never below 100ms.
    """
    exponential = base_delay * 2 ** (attempt - 1)
    jitter = exponential * RECONNECT_JITTER_RATIO * (random_source() * 2 - 1)
    return max(float(MIN_RECONNECT_DELAY_MS), exponential + jitter)


def is_auth_failure(code: int, reason: str) -> bool:
    """Whether a close frame means the service rejected the credential."""
    if code in AUTH_FAILURE_CLOSE_CODES:
        return True
    lowered = (reason or "").lower()
    return any(marker in lowered for marker in AUTH_FAILURE_REASON_MARKERS)


def build_realtime_url(ws_url: str, client_key: str) -> str:
    """Append the client key to the realtime endpoint's query string."""
    parts = urlsplit(ws_url)
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key != CLIENT_KEY_PARAM
    ]
    query.append((CLIENT_KEY_PARAM, client_key))
    return urlunsplit(parts._replace(query=urlencode(query)))


__all__ = [
    "ConnectionState",
    "PendingConnect",
    "ReconnectState",
    "build_realtime_url",
    "compute_backoff_delay",
    "is_auth_failure",
]
