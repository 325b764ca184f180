# src/taskstreak/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import StrEnum
from typing import Any

from ..core.errors import MalformedPersistedRecord


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValueError(f"unknown priority: {raw!r}") from None


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    title: str
    completed: bool
    priority: Priority
    created_at: datetime
    updated_at: datetime
    due_at: datetime | None = None
    description: str | None = None


@dataclass(slots=True, frozen=True)
class NotificationSettings:
    enabled: bool = True
    sound_enabled: bool = True
    reminder_lead_minutes: int = 15


@dataclass(slots=True, frozen=True)
class AppSettings:
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    theme: Theme = Theme.SYSTEM
    language: str = "en"


@dataclass(slots=True, frozen=True)
class UserStats:
    total_tasks: int = 0
    completed_tasks: int = 0
    # Sorted (bucket, count) pairs.
    daily_created: tuple[tuple[str, int], ...] = ()
    weekly_completed: tuple[tuple[str, int], ...] = ()


@dataclass(slots=True, frozen=True)
class StreakInfo:
    current: int = 0
    longest: int = 0
    last_all_complete_date: date | None = None
    qualifying_days: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable view published after every committed command."""

    tasks: tuple[Task, ...]
    settings: AppSettings
    stats: UserStats
    streak: StreakInfo

    def get(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


@dataclass(slots=True, frozen=True)
class TaskDraft:
    """
    Unvalidated candidate task produced by a form or the transcript parser.

    due_date / due_time are combined by the store; a date without a time
    means end of that day.
    """

    title: str
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    due_time: time | None = None


# ---- commands ----


@dataclass(slots=True, frozen=True)
class CreateTask:
    draft: TaskDraft


@dataclass(slots=True, frozen=True)
class UpdateTask:
    task_id: str
    changes: dict[str, Any]


@dataclass(slots=True, frozen=True)
class DeleteTask:
    task_id: str


@dataclass(slots=True, frozen=True)
class ToggleCompleted:
    task_id: str


@dataclass(slots=True, frozen=True)
class CompleteTask:
    task_id: str


@dataclass(slots=True, frozen=True)
class UpdateSettings:
    changes: dict[str, Any]


Command = CreateTask | UpdateTask | DeleteTask | ToggleCompleted | CompleteTask | UpdateSettings


class ReminderActionKind(StrEnum):
    COMPLETE = "complete"
    DISMISS = "dismiss"


@dataclass(slots=True, frozen=True)
class ReminderAction:
    """Typed event a NotificationSink emits when the user acts on a reminder."""

    task_id: str
    kind: ReminderActionKind


# ---- JSON (de)serialisation ----
#
# Persisted records keep camelCase keys so existing exports stay readable.


def _dt_to_str(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def parse_datetime(raw: Any) -> datetime:
    """Rehydrate an ISO-8601 string; naive values are taken as local time."""
    if isinstance(raw, datetime):
        dt = raw
    else:
        text = str(raw).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def task_to_dict(task: Task) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": task.id,
        "title": task.title,
        "completed": task.completed,
        "priority": task.priority.value,
        "createdAt": _dt_to_str(task.created_at),
        "updatedAt": _dt_to_str(task.updated_at),
    }
    if task.description is not None:
        out["description"] = task.description
    if task.due_at is not None:
        out["dueDate"] = _dt_to_str(task.due_at)
    return out


def task_from_dict(raw: Any) -> Task:
    if not isinstance(raw, dict):
        raise MalformedPersistedRecord(f"task record is not an object: {type(raw).__name__}")
    try:
        task_id = str(raw["id"]).strip()
        title = str(raw["title"]).strip()
        if not task_id or not title:
            raise ValueError("empty id or title")
        due_raw = raw.get("dueDate")
        desc = raw.get("description")
        return Task(
            id=task_id,
            title=title,
            description=str(desc) if desc is not None else None,
            completed=bool(raw.get("completed", False)),
            priority=Priority.parse(raw.get("priority", Priority.MEDIUM.value)),
            due_at=parse_datetime(due_raw) if due_raw else None,
            created_at=parse_datetime(raw["createdAt"]),
            updated_at=parse_datetime(raw.get("updatedAt") or raw["createdAt"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedPersistedRecord(f"bad task record: {e}") from e


def settings_to_dict(settings: AppSettings) -> dict[str, Any]:
    n = settings.notifications
    return {
        "notifications": {
            "enabled": n.enabled,
            "soundEnabled": n.sound_enabled,
            "reminderTime": n.reminder_lead_minutes,
        },
        "theme": settings.theme.value,
        "language": settings.language,
    }


def settings_from_dict(raw: Any, *, defaults: AppSettings | None = None) -> AppSettings:
    """Missing keys fall back to `defaults`; present but invalid values are malformed."""
    base = defaults or AppSettings()
    if not isinstance(raw, dict):
        raise MalformedPersistedRecord("settings record is not an object")
    try:
        n_raw = raw.get("notifications") or {}
        if not isinstance(n_raw, dict):
            raise TypeError("notifications is not an object")
        lead = int(n_raw.get("reminderTime", base.notifications.reminder_lead_minutes))
        if lead < 0:
            raise ValueError("negative reminderTime")
        notifications = NotificationSettings(
            enabled=bool(n_raw.get("enabled", base.notifications.enabled)),
            sound_enabled=bool(n_raw.get("soundEnabled", base.notifications.sound_enabled)),
            reminder_lead_minutes=lead,
        )
        return AppSettings(
            notifications=notifications,
            theme=Theme(raw.get("theme", base.theme.value)),
            language=str(raw.get("language", base.language)),
        )
    except (TypeError, ValueError) as e:
        raise MalformedPersistedRecord(f"bad settings record: {e}") from e


def stats_to_dict(stats: UserStats) -> dict[str, Any]:
    return {
        "totalTasks": stats.total_tasks,
        "completedTasks": stats.completed_tasks,
        "dailyCompletion": dict(stats.daily_created),
        "weeklyCompletion": dict(stats.weekly_completed),
    }


def streak_to_dict(streak: StreakInfo) -> dict[str, Any]:
    out: dict[str, Any] = {
        "current": streak.current,
        "longest": streak.longest,
        "daysWithAllTasksCompleted": list(streak.qualifying_days),
    }
    if streak.last_all_complete_date is not None:
        out["lastAllCompleteDate"] = streak.last_all_complete_date.isoformat()
    return out


def streak_from_dict(raw: Any) -> StreakInfo:
    if not isinstance(raw, dict):
        raise MalformedPersistedRecord("streak record is not an object")
    try:
        current = int(raw.get("current", 0))
        longest = int(raw.get("longest", 0))
        if current < 0 or longest < 0:
            raise ValueError("negative streak length")
        days_raw = raw.get("daysWithAllTasksCompleted") or []
        if not isinstance(days_raw, list):
            raise TypeError("daysWithAllTasksCompleted is not a list")
        days = sorted({date.fromisoformat(str(d)).isoformat() for d in days_raw})
        last: date | None = None
        last_raw = raw.get("lastAllCompleteDate")
        if last_raw:
            text = str(last_raw)
            # Older exports stored a full timestamp here.
            last = parse_datetime(text).date() if "T" in text else date.fromisoformat(text)
        return StreakInfo(
            current=current,
            longest=longest,
            last_all_complete_date=last,
            qualifying_days=tuple(days),
        )
    except (TypeError, ValueError) as e:
        raise MalformedPersistedRecord(f"bad streak record: {e}") from e
