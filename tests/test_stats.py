# tests/test_stats.py

from __future__ import annotations

from datetime import date, datetime

from taskstreak.tasks.stats import compute_stats, week_key
from taskstreak.tasks.task_models import Priority, Task, UserStats


def _task(task_id: str, created: datetime, *, due: datetime | None = None, completed: bool = False) -> Task:
    return Task(
        id=task_id,
        title=task_id,
        completed=completed,
        priority=Priority.LOW,
        created_at=created,
        updated_at=created,
        due_at=due,
    )


def test_empty_task_list() -> None:
    assert compute_stats([]) == UserStats()


def test_counts_and_buckets() -> None:
    mon = datetime(2026, 10, 12, 9, 0).astimezone()
    tue = datetime(2026, 10, 13, 9, 0).astimezone()
    next_week = datetime(2026, 10, 20, 9, 0).astimezone()
    tasks = [
        _task("a", mon, completed=True),
        _task("b", mon),
        _task("c", tue, due=next_week, completed=True),
    ]

    stats = compute_stats(tasks)

    assert stats.total_tasks == 3
    assert stats.completed_tasks == 2
    assert stats.daily_created == (("2026-10-12", 2), ("2026-10-13", 1))
    assert stats.weekly_completed == (("2026-W42", 1), ("2026-W43", 1))


def test_week_key_uses_iso_year() -> None:
    assert week_key(date(2027, 1, 1)) == "2026-W53"
    assert week_key(date(2026, 10, 18)) == "2026-W42"
