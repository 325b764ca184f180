# src/taskstreak/tasks/task_store.py

from __future__ import annotations

import json
import logging
import uuid
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Any

from ..core.errors import MalformedPersistedRecord, TaskNotFound, ValidationError
from ..core.ports import Clock, KeyValueStore
from .drafts import resolve_due
from .stats import compute_stats
from .streak import compute_streak
from .task_models import (
    AppSettings,
    Command,
    CompleteTask,
    CreateTask,
    DeleteTask,
    NotificationSettings,
    Priority,
    ReminderAction,
    ReminderActionKind,
    Snapshot,
    StreakInfo,
    Task,
    TaskDraft,
    Theme,
    ToggleCompleted,
    UpdateSettings,
    UpdateTask,
    settings_from_dict,
    settings_to_dict,
    stats_to_dict,
    streak_from_dict,
    streak_to_dict,
    task_from_dict,
    task_to_dict,
)

logger = logging.getLogger(__name__)

KEY_TASKS = "tasks"
KEY_SETTINGS = "settings"
KEY_STATS = "stats"
KEY_STREAK = "streak"

Subscriber = Callable[[Snapshot], None]

_TASK_FIELDS = {"title", "description", "priority", "completed", "due_at", "due_date", "due_time"}
_SETTINGS_FIELDS = {"notifications", "theme", "language"}
_NOTIFICATION_FIELDS = {"enabled", "sound_enabled", "reminder_lead_minutes"}


def _local_now() -> datetime:
    return datetime.now().astimezone()


class TaskStore:
    """
    Owner of the task list and user settings.

    Every mutation goes through a command. A command either commits a new
    Snapshot or raises ValidationError with state untouched. After a commit
    the store recomputes stats and streak, publishes the snapshot to
    subscribers and writes the changed slices to the durable store.

    Commands are applied one at a time: a command issued from inside a
    subscriber callback is queued and applied after the current publication.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        clock: Clock | None = None,
        default_settings: AppSettings | None = None,
    ) -> None:
        self._kv = kv
        self._clock = clock or _local_now
        self._subscribers: list[Subscriber] = []
        self._queue: deque[Command] = deque()
        self._busy = False
        self._issued_ids: set[str] = set()
        self._unreadable: set[str] = set()

        tasks, settings, streak = self._load(default_settings or AppSettings())
        self._issued_ids.update(t.id for t in tasks)
        self._snapshot = self._derive(tasks, settings, streak)
        # Keys that failed to read keep whatever the durable store holds.
        skip = set(self._unreadable)
        if KEY_TASKS in skip:
            skip.update((KEY_STATS, KEY_STREAK))
        self._persist(None, self._snapshot, skip=frozenset(skip))
        logger.info(
            "TaskStore ready tasks=%d streak=%d longest=%d",
            len(tasks),
            self._snapshot.streak.current,
            self._snapshot.streak.longest,
        )

    # ---- loading ----

    def _read_json(self, key: str) -> Any | None:
        try:
            raw = self._kv.get(key)
        except Exception:
            logger.exception("Durable store read failed key=%s; starting without it.", key)
            self._unreadable.add(key)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding non-JSON value for key=%s", key)
            return None

    def _load(self, default_settings: AppSettings) -> tuple[tuple[Task, ...], AppSettings, StreakInfo]:
        tasks: list[Task] = []
        raw_tasks = self._read_json(KEY_TASKS)
        if isinstance(raw_tasks, list):
            seen: set[str] = set()
            for item in raw_tasks:
                try:
                    task = task_from_dict(item)
                except MalformedPersistedRecord as e:
                    logger.warning("Skipping persisted task: %s", e)
                    continue
                if task.id in seen:
                    logger.warning("Skipping duplicate persisted task id=%s", task.id)
                    continue
                seen.add(task.id)
                tasks.append(task)
        elif raw_tasks is not None:
            logger.warning("Persisted tasks is not a list; ignoring it.")

        settings = default_settings
        raw_settings = self._read_json(KEY_SETTINGS)
        if raw_settings is not None:
            try:
                settings = settings_from_dict(raw_settings, defaults=default_settings)
            except MalformedPersistedRecord as e:
                logger.warning("Using default settings: %s", e)

        streak = StreakInfo()
        raw_streak = self._read_json(KEY_STREAK)
        if raw_streak is not None:
            try:
                streak = streak_from_dict(raw_streak)
            except MalformedPersistedRecord as e:
                logger.warning("Resetting streak: %s", e)

        # Cached stats are never read back; they are recomputed from tasks.
        return tuple(tasks), settings, streak

    # ---- snapshot plumbing ----

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._snapshot.tasks

    @property
    def settings(self) -> AppSettings:
        return self._snapshot.settings

    def get(self, task_id: str) -> Task | None:
        return self._snapshot.get(task_id)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a listener; it receives the current snapshot right away."""
        self._subscribers.append(callback)
        self._notify(callback, self._snapshot)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, callback: Subscriber, snap: Snapshot) -> None:
        try:
            callback(snap)
        except Exception:
            logger.exception("Snapshot subscriber %r failed", callback)

    def _derive(self, tasks: tuple[Task, ...], settings: AppSettings, previous: StreakInfo) -> Snapshot:
        today = self._clock().date()
        return Snapshot(
            tasks=tasks,
            settings=settings,
            stats=compute_stats(tasks),
            streak=compute_streak(tasks, previous, today),
        )

    def _commit(self, tasks: tuple[Task, ...], settings: AppSettings) -> Snapshot:
        old = self._snapshot
        new = self._derive(tasks, settings, old.streak)
        self._snapshot = new
        for callback in list(self._subscribers):
            self._notify(callback, new)
        self._persist(old, new)
        return new

    def _write(self, key: str, payload: Any) -> None:
        try:
            self._kv.set(key, json.dumps(payload, ensure_ascii=False))
        except Exception:
            # In-memory state stays authoritative; the next write supersedes this one.
            logger.exception("Durable store write failed key=%s", key)

    def _persist(self, old: Snapshot | None, new: Snapshot, *, skip: frozenset[str] = frozenset()) -> None:
        if KEY_TASKS not in skip and (old is None or old.tasks != new.tasks):
            self._write(KEY_TASKS, [task_to_dict(t) for t in new.tasks])
        if KEY_SETTINGS not in skip and (old is None or old.settings != new.settings):
            self._write(KEY_SETTINGS, settings_to_dict(new.settings))
        if KEY_STATS not in skip and (old is None or old.stats != new.stats):
            self._write(KEY_STATS, stats_to_dict(new.stats))
        if KEY_STREAK not in skip and (old is None or old.streak != new.streak):
            self._write(KEY_STREAK, streak_to_dict(new.streak))

    def refresh(self) -> Snapshot:
        """Recompute derived state (e.g. after midnight) without mutating tasks."""
        new = self._derive(self._snapshot.tasks, self._snapshot.settings, self._snapshot.streak)
        if new != self._snapshot:
            return self._commit(self._snapshot.tasks, self._snapshot.settings)
        return self._snapshot

    # ---- command entrypoints ----

    def create(self, draft: TaskDraft) -> Task:
        return self.dispatch(CreateTask(draft))

    def update(self, task_id: str, changes: Mapping[str, Any] | TaskDraft) -> Task:
        if isinstance(changes, TaskDraft):
            changes = _draft_changes(changes)
        return self.dispatch(UpdateTask(task_id, dict(changes)))

    def delete(self, task_id: str) -> None:
        self.dispatch(DeleteTask(task_id))

    def toggle_completed(self, task_id: str) -> Task:
        return self.dispatch(ToggleCompleted(task_id))

    def update_settings(self, changes: Mapping[str, Any]) -> AppSettings:
        return self.dispatch(UpdateSettings(dict(changes)))

    def handle_action(self, action: ReminderAction) -> None:
        """Apply a reminder action emitted by a NotificationSink."""
        if action.kind == ReminderActionKind.COMPLETE:
            self.dispatch(CompleteTask(action.task_id))
        else:
            logger.debug("Reminder dismissed task_id=%s", action.task_id)

    def dispatch(self, command: Command) -> Any:
        """
        Apply a command and return its result.

        Re-entrant calls (from a subscriber) are queued and return None;
        their errors are logged since there is no caller left to receive them.
        """
        if self._busy:
            self._queue.append(command)
            return None

        self._busy = True
        try:
            result = self._apply(command)
            while self._queue:
                queued = self._queue.popleft()
                try:
                    self._apply(queued)
                except ValidationError as e:
                    logger.warning("Queued command %r rejected: %s", queued, e)
            return result
        finally:
            self._busy = False
            self._queue.clear()

    def _apply(self, command: Command) -> Any:
        if isinstance(command, CreateTask):
            return self._apply_create(command.draft)
        if isinstance(command, UpdateTask):
            return self._apply_update(command.task_id, command.changes)
        if isinstance(command, DeleteTask):
            return self._apply_delete(command.task_id)
        if isinstance(command, ToggleCompleted):
            task = self._require(command.task_id)
            return self._apply_update(task.id, {"completed": not task.completed})
        if isinstance(command, CompleteTask):
            task = self._require(command.task_id)
            if task.completed:
                return task
            return self._apply_update(task.id, {"completed": True})
        if isinstance(command, UpdateSettings):
            return self._apply_settings(command.changes)
        raise TypeError(f"unknown command: {command!r}")

    # ---- command bodies ----

    def _require(self, task_id: str) -> Task:
        task = self._snapshot.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def _new_id(self) -> str:
        while True:
            task_id = uuid.uuid4().hex
            if task_id not in self._issued_ids:
                self._issued_ids.add(task_id)
                return task_id

    def _bump(self, previous: datetime) -> datetime:
        now = self._clock()
        if now <= previous:
            now = previous + timedelta(microseconds=1)
        return now

    def _apply_create(self, draft: TaskDraft) -> Task:
        title = _clean_title(draft.title)
        priority = _coerce_priority(draft.priority)
        due_at = resolve_due(draft.due_date, draft.due_time)
        now = self._clock()
        # Minute granularity: a date-only draft for today (23:59) stays valid until midnight.
        if due_at is not None and due_at < now.replace(second=0, microsecond=0):
            raise ValidationError("due date cannot be in the past")

        task = Task(
            id=self._new_id(),
            title=title,
            description=_clean_description(draft.description),
            completed=False,
            priority=priority,
            due_at=due_at,
            created_at=now,
            updated_at=now,
        )
        self._commit(self._snapshot.tasks + (task,), self._snapshot.settings)
        logger.info("Task created id=%s due=%s priority=%s", task.id, due_at, priority.value)
        return task

    def _apply_update(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        task = self._require(task_id)
        unknown = set(changes) - _TASK_FIELDS
        if unknown:
            raise ValidationError(f"unknown task fields: {', '.join(sorted(unknown))}")

        fields: dict[str, Any] = {}
        if "title" in changes:
            fields["title"] = _clean_title(changes["title"])
        if "description" in changes:
            fields["description"] = _clean_description(changes["description"])
        if "priority" in changes:
            fields["priority"] = _coerce_priority(changes["priority"])
        if "completed" in changes:
            fields["completed"] = bool(changes["completed"])
        if "due_at" in changes:
            due_at = changes["due_at"]
            if due_at is not None and not isinstance(due_at, datetime):
                raise ValidationError("due_at must be a datetime or None")
            if due_at is not None and due_at.tzinfo is None:
                due_at = due_at.astimezone()
            fields["due_at"] = due_at
        elif "due_date" in changes or "due_time" in changes:
            fields["due_at"] = _resolve_partial_due(task, changes)

        updated = replace(task, **fields, updated_at=self._bump(task.updated_at))
        tasks = tuple(updated if t.id == task_id else t for t in self._snapshot.tasks)
        self._commit(tasks, self._snapshot.settings)
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(fields))
        return updated

    def _apply_delete(self, task_id: str) -> None:
        if self._snapshot.get(task_id) is None:
            logger.debug("Delete of unknown task id=%s ignored", task_id)
            return None
        tasks = tuple(t for t in self._snapshot.tasks if t.id != task_id)
        self._commit(tasks, self._snapshot.settings)
        logger.info("Task deleted id=%s", task_id)
        return None

    def _apply_settings(self, changes: Mapping[str, Any]) -> AppSettings:
        current = self._snapshot.settings
        unknown = set(changes) - _SETTINGS_FIELDS
        if unknown:
            raise ValidationError(f"unknown settings: {', '.join(sorted(unknown))}")

        notifications = current.notifications
        if "notifications" in changes:
            notifications = _merge_notifications(notifications, changes["notifications"])

        theme = current.theme
        if "theme" in changes:
            try:
                theme = Theme(str(changes["theme"]).lower())
            except ValueError:
                raise ValidationError(f"unknown theme: {changes['theme']!r}") from None

        language = current.language
        if "language" in changes:
            language = str(changes["language"] or "").strip()
            if not language:
                raise ValidationError("language must not be empty")

        settings = AppSettings(notifications=notifications, theme=theme, language=language)
        self._commit(self._snapshot.tasks, settings)
        logger.info("Settings updated: %s", sorted(changes))
        return settings


# ---- validation helpers ----


def _clean_title(raw: Any) -> str:
    title = str(raw or "").strip()
    if not title:
        raise ValidationError("title must not be empty")
    return title


def _clean_description(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def _coerce_priority(raw: Any) -> Priority:
    if isinstance(raw, Priority):
        return raw
    try:
        return Priority.parse(raw)
    except ValueError as e:
        raise ValidationError(str(e)) from None


def _resolve_partial_due(task: Task, changes: Mapping[str, Any]) -> datetime | None:
    """Apply due_date / due_time on top of the task's current due datetime."""
    current = task.due_at
    due_date: date | None = changes.get("due_date", current.date() if current else None)
    if "due_time" in changes:
        due_time: time | None = changes["due_time"]
    else:
        due_time = current.time() if current else None
    if due_date is not None and not isinstance(due_date, date):
        raise ValidationError("due_date must be a date")
    if due_time is not None and not isinstance(due_time, time):
        raise ValidationError("due_time must be a time")
    return resolve_due(due_date, due_time, tz=current.tzinfo if current else None)


def _merge_notifications(current: NotificationSettings, raw: Any) -> NotificationSettings:
    if isinstance(raw, NotificationSettings):
        raw = {
            "enabled": raw.enabled,
            "sound_enabled": raw.sound_enabled,
            "reminder_lead_minutes": raw.reminder_lead_minutes,
        }
    if not isinstance(raw, Mapping):
        raise ValidationError("notifications must be a mapping")
    unknown = set(raw) - _NOTIFICATION_FIELDS
    if unknown:
        raise ValidationError(f"unknown notification settings: {', '.join(sorted(unknown))}")

    lead = current.reminder_lead_minutes
    if "reminder_lead_minutes" in raw:
        try:
            lead = int(raw["reminder_lead_minutes"])
        except (TypeError, ValueError):
            raise ValidationError("reminder_lead_minutes must be an integer") from None
        if lead < 0:
            raise ValidationError("reminder_lead_minutes must be >= 0")

    return NotificationSettings(
        enabled=bool(raw.get("enabled", current.enabled)),
        sound_enabled=bool(raw.get("sound_enabled", current.sound_enabled)),
        reminder_lead_minutes=lead,
    )


def _draft_changes(draft: TaskDraft) -> dict[str, Any]:
    """A full draft replaces every editable field of the task."""
    return {
        "title": draft.title,
        "description": draft.description,
        "priority": draft.priority,
        "due_at": resolve_due(draft.due_date, draft.due_time),
    }
