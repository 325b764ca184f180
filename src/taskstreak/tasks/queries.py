# src/taskstreak/tasks/queries.py

from __future__ import annotations

"""Read-only views over a snapshot's task list (filters, sorting, day views, export)."""

from collections.abc import Iterable
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from .task_models import Priority, Snapshot, Task, settings_to_dict, task_to_dict

EXPORT_VERSION = "1.0.0"

_PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class StatusFilter(StrEnum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class SortKey(StrEnum):
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    CREATED = "created"
    ALPHABETICAL = "alphabetical"


def is_overdue(task: Task, now: datetime) -> bool:
    """Past due, still open and not due today (today's tasks are never "overdue")."""
    if task.completed or task.due_at is None:
        return False
    return task.due_at < now and task.due_at.date() != now.date()


def filter_tasks(
    tasks: Iterable[Task],
    *,
    status: StatusFilter | str = StatusFilter.ALL,
    search: str = "",
    now: datetime | None = None,
) -> list[Task]:
    status = StatusFilter(status)
    now = now or datetime.now().astimezone()
    query = search.strip().lower()

    out: list[Task] = []
    for task in tasks:
        if query and query not in task.title.lower() and query not in (task.description or "").lower():
            continue
        if status == StatusFilter.PENDING and task.completed:
            continue
        if status == StatusFilter.COMPLETED and not task.completed:
            continue
        if status == StatusFilter.OVERDUE and not is_overdue(task, now):
            continue
        out.append(task)
    return out


def _due_key(task: Task) -> tuple[int, float]:
    # Tasks without a due date sort last.
    if task.due_at is None:
        return (1, 0.0)
    return (0, task.due_at.timestamp())


def sort_tasks(tasks: Iterable[Task], by: SortKey | str = SortKey.DUE_DATE) -> list[Task]:
    by = SortKey(by)
    items = list(tasks)
    if by == SortKey.DUE_DATE:
        return sorted(items, key=_due_key)
    if by == SortKey.PRIORITY:
        return sorted(items, key=lambda t: (-_PRIORITY_RANK[t.priority], *_due_key(t)))
    if by == SortKey.CREATED:
        return sorted(items, key=lambda t: t.created_at, reverse=True)
    return sorted(items, key=lambda t: t.title.casefold())


def tasks_for_day(tasks: Iterable[Task], day: date) -> list[Task]:
    return [t for t in tasks if t.due_at is not None and t.due_at.date() == day]


def daily_progress(tasks: Iterable[Task], day: date) -> float:
    """Percent of the tasks due on `day` that are completed (0 when none are due)."""
    due = tasks_for_day(tasks, day)
    if not due:
        return 0.0
    return 100.0 * sum(1 for t in due if t.completed) / len(due)


def export_payload(snapshot: Snapshot, *, now: datetime | None = None) -> dict[str, Any]:
    """Backup document with the same record layout as the durable store."""
    now = now or datetime.now().astimezone()
    return {
        "tasks": [task_to_dict(t) for t in snapshot.tasks],
        "settings": settings_to_dict(snapshot.settings),
        "exportDate": now.isoformat(),
        "version": EXPORT_VERSION,
    }
