"""Structured logging configuration for zhook.

Provides structured logging using structlog, in JSON (production) or
colored console (development) form, and the level-gated ``ClientLogger``
the client core writes its diagnostics through.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

from .config import LogLevel

if TYPE_CHECKING:
    from structlog.typing import Processor

def configure_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Configure structured logging for zhook.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format: Output format - "json" for production, "text" for development.

    Example:
        ```python
        from zhook.logging import configure_logging, get_logger

        configure_logging(level="DEBUG", format="text")
        logger = get_logger()
        logger.info("Listener started", version="0.1.0")
        ```
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format.lower() == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Logging is left unconfigured until the application calls
    ``configure_logging``; importing zhook never touches global logging.

    Args:
        name: Logger name. Uses calling module name if None.

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class ClientLogger:
    """Level-gated diagnostics for one client.

    Messages above the configured ``LogLevel`` are dropped here, before
    they reach the sink; ``silent`` drops everything. The sink defaults to
    the ``zhook.client`` structlog logger, so the stdlib level set by
    ``configure_logging`` still applies on top. Pass any object with
    ``error``/``warning``/``info``/``debug`` methods to capture output.

    Example:
        ```python
        log = ClientLogger(LogLevel.WARN)
        log.info("dropped")
        log.warn("written", attempt=3)
        ```
    """

    def __init__(self, level: LogLevel | str = LogLevel.INFO, sink: Any | None = None) -> None:
        self.level = LogLevel(level)
        self._sink = sink if sink is not None else get_logger("zhook.client")

    def is_enabled(self, level: LogLevel) -> bool:
        """Whether messages at ``level`` are written."""
        return self.level.allows(level)

    def _write(self, level: LogLevel, method: str, event: str, fields: dict[str, Any]) -> None:
        if self.level.allows(level):
            getattr(self._sink, method)(event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self._write(LogLevel.ERROR, "error", event, fields)

    def warn(self, event: str, **fields: Any) -> None:
        self._write(LogLevel.WARN, "warning", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._write(LogLevel.INFO, "info", event, fields)

    def debug(self, event: str, **fields: Any) -> None:
        self._write(LogLevel.DEBUG, "debug", event, fields)


# Convenience: lazy logger for quick imports
logger = get_logger("zhook")
