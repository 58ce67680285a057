"""Shared constants for the zhook client.

Centralizes default endpoints, protocol values, and the user-facing
messages that point people at the zhook website, so the client library,
examples, and error messages stay consistent.
"""

from __future__ import annotations

# Website
WEBSITE_URL = "https://zhook.dev"
SIGNUP_MESSAGE = f"Sign up for free at {WEBSITE_URL} to obtain one"
KEY_MANAGEMENT_MESSAGE = f"Visit {WEBSITE_URL} to manage your API keys"
AUTH_VERIFICATION_MESSAGE = f"Visit {WEBSITE_URL} to verify your client key"
ACCOUNT_MANAGEMENT_MESSAGE = f"Visit {WEBSITE_URL} for account management"

# Default endpoints
DEFAULT_WS_URL = "wss://web.hookr.cloud/events"
DEFAULT_API_URL = "https://web.hookr.cloud/api/v1"

# Client identification sent on every REST request
CLIENT_VERSION = "0.1.0"
USER_AGENT = f"zhook-python/{CLIENT_VERSION}"

# Realtime authentication
CLIENT_KEY_PARAM = "clientKey"
MIN_CLIENT_KEY_LENGTH = 10

# Close codes the service uses to reject credentials
AUTH_FAILURE_CLOSE_CODES = frozenset({1008, 4001})
AUTH_FAILURE_REASON_MARKERS = ("auth", "invalid")

NORMAL_CLOSE_CODE = 1000
ABNORMAL_CLOSE_CODE = 1006
CLIENT_CLOSE_REASON = "Client closed"

# Reconnection (milliseconds)
DEFAULT_MAX_RECONNECT_ATTEMPTS = 10
DEFAULT_RECONNECT_DELAY_MS = 1000
MIN_RECONNECT_DELAY_MS = 100
RECONNECT_JITTER_RATIO = 0.25

# Connection establishment (seconds)
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_REQUEST_TIMEOUT = 30.0

# Diagnostics
RAW_MESSAGE_EXCERPT_LENGTH = 200

# Persisted event logs
EVENT_LOG_PREFIX = "zhook-logs-"


def missing_client_key() -> str:
    """Message for a missing client key."""
    return f"No client key provided. {SIGNUP_MESSAGE}"


def authentication_failed(reason: str | None = None) -> str:
    """Message for an authentication failure, with the website hint."""
    base = f"Authentication failed: {reason}" if reason else "Authentication failed"
    return f"{base}. {AUTH_VERIFICATION_MESSAGE}"
