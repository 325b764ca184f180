# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskstreak.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeTimers, MemoryKVStore, RecordingSink


@pytest.fixture()
def clock() -> FakeClock:
    # Mid-morning so "today" tasks can be due later the same day.
    return FakeClock(datetime(2026, 10, 18, 9, 0).astimezone())


@pytest.fixture()
def kv() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture()
def store(kv: MemoryKVStore, clock: FakeClock) -> TaskStore:
    return TaskStore(kv, clock=clock)


@pytest.fixture()
def timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskstreak-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        store_path=tmp_path / "taskstreak.sqlite3",
        notifier="none",
        notifications_enabled=True,
        sound_enabled=True,
        default_reminder_minutes=15,
        language="en",
    )
