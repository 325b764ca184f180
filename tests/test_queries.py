# tests/test_queries.py

from __future__ import annotations

from datetime import date, datetime, timedelta

from taskstreak.tasks.queries import (
    daily_progress,
    export_payload,
    filter_tasks,
    is_overdue,
    sort_tasks,
    tasks_for_day,
)
from taskstreak.tasks.task_models import AppSettings, Priority, Snapshot, StreakInfo, Task, UserStats

NOW = datetime(2026, 10, 18, 12, 0).astimezone()


def _task(
    task_id: str,
    *,
    title: str | None = None,
    due: datetime | None = None,
    completed: bool = False,
    priority: Priority = Priority.MEDIUM,
    created: datetime | None = None,
    description: str | None = None,
) -> Task:
    created = created or NOW - timedelta(days=3)
    return Task(
        id=task_id,
        title=title or task_id,
        description=description,
        completed=completed,
        priority=priority,
        created_at=created,
        updated_at=created,
        due_at=due,
    )


def test_overdue_excludes_today_and_completed() -> None:
    assert is_overdue(_task("a", due=NOW - timedelta(days=1)), NOW)
    assert not is_overdue(_task("b", due=NOW - timedelta(hours=1)), NOW)
    assert not is_overdue(_task("c", due=NOW - timedelta(days=1), completed=True), NOW)
    assert not is_overdue(_task("d"), NOW)


def test_filter_by_status_and_search() -> None:
    tasks = [
        _task("a", title="Pay rent", completed=True),
        _task("b", title="Call bank", description="about the rent"),
        _task("c", title="Gym", due=NOW - timedelta(days=2)),
    ]
    assert [t.id for t in filter_tasks(tasks, status="pending", now=NOW)] == ["b", "c"]
    assert [t.id for t in filter_tasks(tasks, status="completed", now=NOW)] == ["a"]
    assert [t.id for t in filter_tasks(tasks, status="overdue", now=NOW)] == ["c"]
    assert [t.id for t in filter_tasks(tasks, search="RENT", now=NOW)] == ["a", "b"]


def test_sorting() -> None:
    tasks = [
        _task("late", title="b", due=NOW + timedelta(days=2), priority=Priority.LOW, created=NOW - timedelta(days=1)),
        _task("none", title="C", priority=Priority.HIGH, created=NOW - timedelta(days=5)),
        _task("soon", title="a", due=NOW + timedelta(hours=1), priority=Priority.LOW, created=NOW),
        _task("hi", title="d", due=NOW + timedelta(days=3), priority=Priority.HIGH),
    ]
    assert [t.id for t in sort_tasks(tasks)] == ["soon", "late", "hi", "none"]
    assert [t.id for t in sort_tasks(tasks, by="priority")] == ["hi", "none", "soon", "late"]
    assert [t.id for t in sort_tasks(tasks, by="created")][0] == "soon"
    assert [t.title for t in sort_tasks(tasks, by="alphabetical")] == ["a", "b", "C", "d"]


def test_day_views() -> None:
    today = NOW.date()
    tasks = [
        _task("a", due=NOW, completed=True),
        _task("b", due=NOW + timedelta(hours=2)),
        _task("c", due=NOW + timedelta(days=1)),
    ]
    assert [t.id for t in tasks_for_day(tasks, today)] == ["a", "b"]
    assert daily_progress(tasks, today) == 50.0
    assert daily_progress(tasks, date(2030, 1, 1)) == 0.0


def test_export_payload_layout() -> None:
    snap = Snapshot(
        tasks=(_task("a", due=NOW),),
        settings=AppSettings(),
        stats=UserStats(),
        streak=StreakInfo(),
    )
    payload = export_payload(snap, now=NOW)
    assert payload["version"] == "1.0.0"
    assert payload["exportDate"] == NOW.isoformat()
    assert payload["tasks"][0]["dueDate"] == NOW.isoformat()
    assert payload["settings"]["notifications"]["reminderTime"] == 15
