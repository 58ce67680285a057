"""zhook exception hierarchy.

All exceptions inherit from ZhookError so callers can catch every
client error with a single except clause. Validation errors are raised
synchronously at the call site; connection and message errors are
delivered to registered error handlers instead.
"""

from __future__ import annotations


class ZhookError(Exception):
    """Base exception for all zhook errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code.
    """

    code: str = "zhook_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


# Validation


class InvalidCredentialError(ZhookError):
    """The client key is missing or malformed."""

    code: str = "invalid_credential"


class InvalidConfigurationError(ZhookError):
    """Client options or hook input failed validation.

    Attributes:
        field: The option or hook field that failed, when known.
    """

    code: str = "invalid_configuration"

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code,
                "field": self.field,
                "message": self.message,
            }
        }


class InvalidHandlerError(ZhookError):
    """A handler passed for registration is not callable."""

    code: str = "invalid_handler"


class ClientClosedError(ZhookError):
    """The client has been closed and cannot connect again."""

    code: str = "client_closed"

    def __init__(self, message: str = "Cannot connect: client has been closed") -> None:
        super().__init__(message)


# Connection


class ZhookConnectionError(ZhookError):
    """Base class for realtime connection failures."""

    code: str = "connection_error"


class ConnectionTimeoutError(ZhookConnectionError):
    """The transport did not open within the connection timeout."""

    code: str = "connection_timeout"

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Connection timeout after {timeout:g}s")


class TransportError(ZhookConnectionError):
    """The underlying WebSocket transport reported an error."""

    code: str = "transport_error"


class AuthenticationFailedError(ZhookConnectionError):
    """The service closed the connection because the credential was rejected.

    Attributes:
        close_code: WebSocket close code sent by the service.
        reason: Close reason text sent by the service.
    """

    code: str = "authentication_failed"

    def __init__(self, message: str, close_code: int | None = None, reason: str = "") -> None:
        self.close_code = close_code
        self.reason = reason
        super().__init__(message)


class MaxReconnectAttemptsReachedError(ZhookConnectionError):
    """Reconnection stopped because the attempt limit was reached.

    Attributes:
        max_attempts: The configured maximum number of reconnect attempts.
    """

    code: str = "max_reconnect_attempts_reached"

    def __init__(self, max_attempts: int, message: str | None = None) -> None:
        self.max_attempts = max_attempts
        super().__init__(message or f"Maximum reconnection attempts ({max_attempts}) reached")


class ReconnectionExhaustedError(MaxReconnectAttemptsReachedError):
    """The last scheduled reconnect attempt failed and none remain.

    Attributes:
        last_error: Message of the final underlying failure.
    """

    code: str = "reconnection_exhausted"

    def __init__(self, max_attempts: int, last_error: str) -> None:
        self.last_error = last_error
        super().__init__(
            max_attempts,
            f"All reconnection attempts failed. Last error: {last_error}",
        )


# Messages


class MessageParseError(ZhookError):
    """An inbound frame could not be decoded.

    Attributes:
        raw_excerpt: The first characters of the offending frame.
    """

    code: str = "message_parse_failed"

    def __init__(self, message: str, raw_excerpt: str = "") -> None:
        self.raw_excerpt = raw_excerpt
        super().__init__(message)


# REST API


class ApiError(ZhookError):
    """Base class for REST API failures."""

    code: str = "api_error"


class ApiRequestError(ApiError):
    """The API answered with a non-2xx status.

    Attributes:
        status: HTTP status code.
        status_text: HTTP reason phrase.
    """

    code: str = "api_request_failed"

    def __init__(self, message: str, status: int, status_text: str = "") -> None:
        self.status = status
        self.status_text = status_text
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code,
                "status": self.status,
                "message": self.message,
            }
        }


class ApiNetworkError(ApiError):
    """No response was received from the API."""

    code: str = "api_network_error"


class ApiInvalidResponseError(ApiError):
    """The API answered 2xx with a body that is not valid JSON."""

    code: str = "api_invalid_response"


# Event file logging


class EventLogError(ZhookError):
    """Writing received events to the log file failed."""

    code: str = "event_log_error"
