# tests/fakes.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from taskstreak.core.errors import PersistenceError
from taskstreak.tasks.task_models import Task


class MemoryKVStore:
    """In-memory KeyValueStore that records every write."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.writes: list[str] = []

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes.append(key)
        self.data[key] = value


class FailingKVStore(MemoryKVStore):
    """Reads work; writes fail while `failing` is True."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.failing = True

    def set(self, key: str, value: str) -> None:
        if self.failing:
            raise PersistenceError(f"disk full writing {key}")
        super().set(key, value)


class FakeClock:
    """Controllable clock returning aware local datetimes."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@dataclass(slots=True)
class FakeTimer:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(slots=True)
class FakeTimers:
    """
    Manual TimerFactory: nothing fires until the test calls fire_due().

    Cancelled timers never fire, like asyncio handles.
    """

    created: list[FakeTimer] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay=delay, callback=callback)
        self.created.append(timer)
        return timer

    @property
    def live(self) -> list[FakeTimer]:
        return [t for t in self.created if not t.cancelled]

    def fire_all(self) -> int:
        fired = 0
        for timer in list(self.live):
            timer.cancelled = True
            timer.callback()
            fired += 1
        return fired


@dataclass(slots=True)
class RecordingSink:
    """NotificationSink that records deliveries."""

    grant: bool = True
    displayed: list[Task] = field(default_factory=list)
    sounds: int = 0
    permission_requests: int = 0

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.grant

    def display(self, task: Task) -> None:
        self.displayed.append(task)

    def play_sound(self) -> None:
        self.sounds += 1


class UnreadableKVStore(MemoryKVStore):
    """Writes work; reads of the keys in `broken` fail."""

    def __init__(self, initial: dict[str, str] | None = None, *, broken: set[str]) -> None:
        super().__init__(initial)
        self.broken = broken

    def get(self, key: str) -> str | None:
        if key in self.broken:
            raise PersistenceError(f"database is locked reading {key}")
        return super().get(key)
