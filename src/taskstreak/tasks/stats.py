# src/taskstreak/tasks/stats.py

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import date

from .task_models import Task, UserStats


def week_key(day: date) -> str:
    """ISO week bucket, e.g. 2026-W42."""
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def compute_stats(tasks: Iterable[Task]) -> UserStats:
    """
    Derive aggregate counts from the full task list.

    Always recomputed from scratch; there is no incremental mode.
    Completed tasks are bucketed by the week they were due in, or the week
    they were created in when they have no due date.
    """
    total = 0
    completed = 0
    daily: Counter[str] = Counter()
    weekly: Counter[str] = Counter()

    for task in tasks:
        total += 1
        daily[task.created_at.date().isoformat()] += 1
        if task.completed:
            completed += 1
            anchor = task.due_at or task.created_at
            weekly[week_key(anchor.date())] += 1

    return UserStats(
        total_tasks=total,
        completed_tasks=completed,
        daily_created=tuple(sorted(daily.items())),
        weekly_completed=tuple(sorted(weekly.items())),
    )
