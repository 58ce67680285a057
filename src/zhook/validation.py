"""Fail-fast validation of client configuration and per-call input.

Every check here is synchronous and side-effect free. Failures raise
immediately at the call site, before any I/O, and are never routed
through the error-handler channel.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .config import ClientConfig, LogLevel, Settings, settings
from .constants import (
    KEY_MANAGEMENT_MESSAGE,
    MIN_CLIENT_KEY_LENGTH,
    MIN_RECONNECT_DELAY_MS,
    SIGNUP_MESSAGE,
)
from .exceptions import InvalidConfigurationError, InvalidCredentialError, InvalidHandlerError
from .models import HTTP_SCHEMES, WEBSOCKET_SCHEMES, HookConfig, HookUpdate, url_problem


def validate_client_key(client_key: object) -> str:
    """Check the client key is a usable credential.

    Raises:
        InvalidCredentialError: If the key is not a string, is blank, or is
            shorter than 10 characters.
    """
    if not isinstance(client_key, str) or not client_key:
        raise InvalidCredentialError(
            f"Client key is required and must be a non-empty string. {SIGNUP_MESSAGE}"
        )
    if not client_key.strip():
        raise InvalidCredentialError(
            f"Client key cannot be empty or whitespace only. {SIGNUP_MESSAGE}"
        )
    if len(client_key) < MIN_CLIENT_KEY_LENGTH:
        raise InvalidCredentialError(
            f"Client key appears to be too short (minimum {MIN_CLIENT_KEY_LENGTH} characters). "
            f"{KEY_MANAGEMENT_MESSAGE}"
        )
    return client_key


def validate_url(
    url: object, *, name: str, schemes: Iterable[str], field: str | None = None
) -> str:
    """Check a URL parses and uses one of the expected schemes.

    Args:
        url: Candidate URL.
        name: Human-readable name for messages.
        schemes: Allowed schemes, e.g. ``("ws", "wss")``.
        field: Option name reported on the error.

    Raises:
        InvalidConfigurationError: If the URL is unusable.
    """
    problem = url_problem(url, name, schemes)
    if problem:
        raise InvalidConfigurationError(problem, field=field)
    return url  # type: ignore[return-value]


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_options(
    *,
    ws_url: str | None = None,
    api_url: str | None = None,
    max_reconnect_attempts: int | None = None,
    reconnect_delay: int | None = None,
    log_level: LogLevel | str | None = None,
    connect_timeout: float | None = None,
    request_timeout: float | None = None,
    defaults: Settings | None = None,
) -> ClientConfig:
    """Validate client options merged over the configured defaults.

    Options left as None take their value from ``defaults`` (the global
    ``Settings`` when not given). The merged values are checked as a
    whole, so endpoints read from ``ZHOOK_*`` variables are held to the
    same rules as explicit arguments.

    Returns:
        The frozen client configuration.

    Raises:
        InvalidConfigurationError: If any effective option is malformed.
    """
    base = defaults or settings

    def pick(value: Any, field: str) -> Any:
        return value if value is not None else getattr(base, field)

    ws_url = pick(ws_url, "ws_url")
    api_url = pick(api_url, "api_url")
    max_reconnect_attempts = pick(max_reconnect_attempts, "max_reconnect_attempts")
    reconnect_delay = pick(reconnect_delay, "reconnect_delay")
    log_level = pick(log_level, "log_level")
    connect_timeout = pick(connect_timeout, "connect_timeout")
    request_timeout = pick(request_timeout, "request_timeout")

    validate_url(ws_url, name="WebSocket URL", schemes=WEBSOCKET_SCHEMES, field="ws_url")
    validate_url(api_url, name="API URL", schemes=HTTP_SCHEMES, field="api_url")

    if not _is_int(max_reconnect_attempts) or max_reconnect_attempts < 0:
        raise InvalidConfigurationError(
            "max_reconnect_attempts must be a non-negative integer",
            field="max_reconnect_attempts",
        )

    if not _is_int(reconnect_delay) or reconnect_delay < MIN_RECONNECT_DELAY_MS:
        raise InvalidConfigurationError(
            f"reconnect_delay must be an integer >= {MIN_RECONNECT_DELAY_MS}ms",
            field="reconnect_delay",
        )

    try:
        level = LogLevel(log_level)
    except ValueError:
        valid = ", ".join(member.value for member in LogLevel)
        raise InvalidConfigurationError(
            f"log_level must be one of: {valid}", field="log_level"
        ) from None

    timeouts = (("connect_timeout", connect_timeout), ("request_timeout", request_timeout))
    for field, value in timeouts:
        if isinstance(value, bool) or not isinstance(value, int | float) or not value > 0:
            raise InvalidConfigurationError(f"{field} must be a positive number", field=field)

    return ClientConfig(
        ws_url=ws_url,
        api_url=api_url,
        max_reconnect_attempts=max_reconnect_attempts,
        reconnect_delay=reconnect_delay,
        log_level=level,
        connect_timeout=connect_timeout,
        request_timeout=request_timeout,
    )


def _hook_error(exc: PydanticValidationError) -> InvalidConfigurationError:
    """Translate the first pydantic error into a configuration error."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or None
    if error["type"] == "value_error":
        message = str(error["ctx"]["error"])
    elif error["type"] == "missing":
        message = f"Hook {field} is required"
    elif error["type"] == "extra_forbidden":
        message = f"Unknown hook field: {field}"
    else:
        message = f"Invalid hook {field}: {error['msg']}"
    return InvalidConfigurationError(message, field=field)


def validate_hook_config(config: HookConfig | Mapping[str, Any]) -> HookConfig:
    """Validate a full hook configuration for creation.

    Accepts a ``HookConfig`` or a mapping with camelCase or snake_case keys.

    Raises:
        InvalidConfigurationError: If the configuration is malformed.
    """
    if isinstance(config, HookConfig):
        return config
    if not isinstance(config, Mapping):
        raise InvalidConfigurationError("Hook config must be a mapping")
    try:
        return HookConfig.model_validate(dict(config))
    except PydanticValidationError as exc:
        raise _hook_error(exc) from None


def validate_partial_hook_config(config: HookUpdate | Mapping[str, Any]) -> HookUpdate:
    """Validate a partial hook configuration for updates.

    Raises:
        InvalidConfigurationError: If the update is empty or any provided
            field is malformed.
    """
    if isinstance(config, HookUpdate):
        update = config
    elif isinstance(config, Mapping):
        if not config:
            raise InvalidConfigurationError("At least one field must be provided for update")
        try:
            update = HookUpdate.model_validate(dict(config))
        except PydanticValidationError as exc:
            raise _hook_error(exc) from None
    else:
        raise InvalidConfigurationError("Hook config must be a mapping")

    if not update.model_fields_set:
        raise InvalidConfigurationError("At least one field must be provided for update")
    return update


def validate_hook_id(hook_id: object) -> str:
    """Check a hook identifier is a non-blank string.

    Raises:
        InvalidConfigurationError: If the identifier is unusable.
    """
    if not isinstance(hook_id, str) or not hook_id.strip():
        raise InvalidConfigurationError("Hook ID is required and must be a non-empty string")
    return hook_id


def validate_handler(handler: object, kind: str) -> Callable[..., Any]:
    """Check a handler can be called.

    Args:
        handler: Candidate handler.
        kind: Handler kind for the message (e.g. "EventHandler").

    Raises:
        InvalidHandlerError: If the handler is not callable.
    """
    if not callable(handler):
        raise InvalidHandlerError(f"{kind} must be callable, got {type(handler).__name__}")
    return handler
