"""Base model settings and shared helpers for zhook models."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import AnyUrl, ConfigDict, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

HTTP_SCHEMES = ("http", "https")
WEBSOCKET_SCHEMES = ("ws", "wss")

_URL_ADAPTER = TypeAdapter(AnyUrl)


def url_problem(value: object, name: str, schemes: Iterable[str]) -> str | None:
    """Describe what is wrong with a URL, or return None if it is acceptable.

    Args:
        value: Candidate URL.
        name: Human-readable name used in the message (e.g. "API URL").
        schemes: Allowed schemes, without "://".
    """
    allowed = tuple(schemes)
    if not isinstance(value, str) or not value.strip():
        return f"{name} must be a non-empty string"
    try:
        parsed = _URL_ADAPTER.validate_python(value)
    except PydanticValidationError as exc:
        return f"{name} is not a valid URL: {exc.errors()[0]['msg']}"
    if parsed.scheme not in allowed:
        protocols = " or ".join(f"{scheme}://" for scheme in allowed)
        return f"{name} must use {protocols} protocol"
    return None


def utc_timestamp(now: datetime | None = None) -> str:
    """Format a UTC instant as ISO 8601 with milliseconds and a ``Z`` suffix.

    Examples:
        utc_timestamp() -> "2024-01-15T10:30:00.123Z"
    """
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Wire records use camelCase keys; Python attributes stay snake_case.
WIRE_MODEL_CONFIG = ConfigDict(populate_by_name=True, frozen=True, extra="allow")
