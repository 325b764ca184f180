# tests/test_kv_store.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskstreak.core.errors import PersistenceError
from taskstreak.storage.kv_store import SqliteKeyValueStore
from taskstreak.tasks.task_models import TaskDraft
from taskstreak.tasks.task_store import TaskStore


def test_set_get_overwrite_delete(tmp_path: Path) -> None:
    store = SqliteKeyValueStore(tmp_path / "kv.sqlite3")

    assert store.get("tasks") is None
    store.set("tasks", "[]")
    store.set("tasks", '[{"id": "x"}]')
    store.set("settings", "{}")

    assert store.get("tasks") == '[{"id": "x"}]'
    assert store.keys() == ["settings", "tasks"]

    store.delete("tasks")
    assert store.get("tasks") is None


def test_values_survive_reopen(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "kv.sqlite3"
    SqliteKeyValueStore(path).set("streak", '{"current": 1}')
    assert SqliteKeyValueStore(path).get("streak") == '{"current": 1}'


def test_task_store_on_sqlite(tmp_path: Path) -> None:
    path = tmp_path / "kv.sqlite3"
    first = TaskStore(SqliteKeyValueStore(path))
    task = first.create(TaskDraft(title="on disk"))

    second = TaskStore(SqliteKeyValueStore(path))
    assert second.get(task.id) == task


def test_unwritable_location_raises_persistence_error(tmp_path: Path) -> None:
    store = SqliteKeyValueStore(tmp_path / "kv.sqlite3")
    (tmp_path / "kv.sqlite3").unlink()
    (tmp_path / "kv.sqlite3").mkdir()
    with pytest.raises(PersistenceError):
        store.set("tasks", "[]")
