"""Cancellable timers for connection timeouts and reconnect backoff.

The state machine only schedules through the ``Scheduler`` protocol, so
tests can substitute a virtual clock and advance time deterministically.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    """A scheduled callback that can be cancelled before it fires."""

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule ``callback`` to run after ``delay`` seconds."""
        ...


class AsyncioScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


__all__ = ["AsyncioScheduler", "Scheduler", "TimerHandle"]
