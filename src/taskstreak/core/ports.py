# src/taskstreak/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task core.

The store and the scheduler depend on Protocols instead of concrete hosts.
A host without notification support gets the no-op sink at construction
time; the core never probes for capabilities itself.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

Clock = Callable[[], datetime]


class KeyValueStore(Protocol):
    """Durable key -> JSON text store (tasks / settings / stats / streak)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class NotificationSink(Protocol):
    """
    Host side of reminders.

    request_permission() may prompt the user; it is awaited in the background
    and never blocks command processing.
    """

    async def request_permission(self) -> bool: ...
    def display(self, task: Any) -> None: ...
    def play_sound(self) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerFactory(Protocol):
    """Anything with asyncio's call_later() shape (the event loop itself fits)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...
