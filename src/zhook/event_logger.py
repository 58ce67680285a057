"""Append received webhook events to a timestamped JSONL file.

Each ``log_event`` call writes one line:

    {"timestamp": "...", "eventId": "...", "hookId": "...", "receivedAt": "...", "payload": ...}

where ``timestamp`` is the local processing time and the rest is copied
from the event.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from .constants import EVENT_LOG_PREFIX
from .exceptions import EventLogError
from .models import LoggedEvent, WebhookEvent, utc_timestamp

logger = logging.getLogger(__name__)


class EventLogger:
    """Writes webhook events to ``zhook-logs-<timestamp>.json``.

    Example:
        ```python
        event_logger = EventLogger(base_dir="logs")
        filename = event_logger.initialize()
        client.on_hook_called(event_logger.log_event)
        ```

    Args:
        base_dir: Directory for the log file. Defaults to the current
            working directory.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self._log_file_path: Path | None = None
        self._event_count = 0
        self._initialized = False

    @staticmethod
    def generate_log_filename(now: datetime | None = None) -> str:
        """Timestamped filename, e.g. ``zhook-logs-2024-01-15T10-30-00-123Z.json``."""
        stamp = utc_timestamp(now).replace(":", "-").replace(".", "-")
        return f"{EVENT_LOG_PREFIX}{stamp}.json"

    def initialize(self) -> str:
        """Create the empty log file.

        Calling again after a successful initialize returns the existing
        filename without creating another file.

        Returns:
            The log filename (without directory).

        Raises:
            EventLogError: If the file cannot be created.
        """
        if self._initialized and self._log_file_path is not None:
            return self._log_file_path.name

        filename = self.generate_log_filename()
        path = self._base_dir / filename
        try:
            path.write_text("", encoding="utf-8")
        except OSError as exc:
            raise EventLogError(f"Failed to create log file {path}: {exc}") from exc

        self._log_file_path = path
        self._initialized = True
        logger.debug("Event log created at %s", path)
        return filename

    def log_event(self, event: WebhookEvent) -> LoggedEvent:
        """Append one event to the log file.

        Returns:
            The entry that was written.

        Raises:
            EventLogError: If not initialized or the write fails.
        """
        if not self._initialized or self._log_file_path is None:
            raise EventLogError("EventLogger not initialized. Call initialize() first.")

        entry = LoggedEvent.from_event(event)
        try:
            with self._log_file_path.open("a", encoding="utf-8") as handle:
                handle.write(entry.to_json_line())
        except OSError as exc:
            raise EventLogError(f"Failed to write event to log file: {exc}") from exc

        self._event_count += 1
        return entry

    def close(self) -> None:
        """Stop accepting events. The file is left in place."""
        self._initialized = False

    @property
    def log_file_path(self) -> Path | None:
        return self._log_file_path

    @property
    def event_count(self) -> int:
        return self._event_count

    @property
    def is_initialized(self) -> bool:
        return self._initialized


__all__ = ["EventLogger"]
