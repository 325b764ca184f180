# src/taskstreak/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

Keeps one single-shot timer per task that should be reminded about:
- not completed,
- has a due date,
- notifications enabled,
- due date minus the lead time is still in the future.

Every snapshot triggers a full resync: all armed timers are cancelled and the
eligible ones re-armed. The timer table is rebuilt from the task list each
time, so it cannot drift from it (no orphaned timers for deleted or edited
tasks). The cost is O(n) per commit.

Delivery (display / sound) belongs to the injected NotificationSink.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from ..core.ports import Clock, NotificationSink, TimerFactory, TimerHandle
from .task_models import NotificationSettings, Snapshot, Task

if TYPE_CHECKING:
    from .task_store import TaskStore

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(slots=True, frozen=True)
class ArmedReminder:
    task: Task
    fire_at: datetime
    handle: TimerHandle


def reminder_time(task: Task, notifications: NotificationSettings) -> datetime | None:
    """When the reminder for `task` should fire, or None if it gets no reminder."""
    if not notifications.enabled or task.completed or task.due_at is None:
        return None
    return task.due_at - timedelta(minutes=notifications.reminder_lead_minutes)


class ReminderScheduler:
    """
    Owns the table of armed reminder timers.

    The table is touched only from resync(), the timer callbacks and close();
    the task store never reaches into it.
    """

    def __init__(
        self,
        sink: NotificationSink,
        *,
        clock: Clock | None = None,
        timers: TimerFactory | None = None,
        permission: bool | None = None,
    ) -> None:
        self._sink = sink
        self._clock = clock or _local_now
        self._timers = timers
        self._armed: dict[str, ArmedReminder] = {}
        self._generation = 0
        self._notifications = NotificationSettings(enabled=False)
        # None until the sink has been asked; hosts that already know may pass it in.
        self._permission = permission
        self._permission_task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None

    # ---- wiring ----

    def attach(self, store: TaskStore) -> None:
        """Subscribe to the store; the current snapshot is synced immediately."""
        self.detach()
        self._unsubscribe = store.subscribe(self.resync)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def close(self) -> None:
        self.detach()
        self._cancel_all()
        if self._permission_task is not None and not self._permission_task.done():
            self._permission_task.cancel()
        logger.debug("ReminderScheduler closed")

    @property
    def armed(self) -> dict[str, datetime]:
        """task id -> fire time of every armed reminder."""
        return {task_id: r.fire_at for task_id, r in self._armed.items()}

    @property
    def permission_granted(self) -> bool | None:
        return self._permission

    # ---- permission ----

    async def request_permission(self) -> bool:
        """Ask the sink for display permission. Failures count as a denial."""
        try:
            granted = bool(await self._sink.request_permission())
        except Exception:
            logger.exception("Notification permission request failed")
            granted = False
        self._permission = granted
        if not granted:
            logger.info("Notification display not permitted; reminders fall back to sound only.")
        return granted

    def _ensure_permission_requested(self) -> None:
        if self._permission is not None or self._permission_task is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet: the host awaits request_permission() itself.
            return

        async def _run() -> None:
            await self.request_permission()

        self._permission_task = loop.create_task(_run())

    # ---- resync ----

    def resync(self, snapshot: Snapshot) -> None:
        """Cancel every armed timer, then arm one per eligible task."""
        self._cancel_all()
        self._generation += 1
        self._notifications = snapshot.settings.notifications
        if not self._notifications.enabled:
            logger.debug("Notifications disabled; no reminders armed")
            return

        self._ensure_permission_requested()

        now = self._clock()
        for task in snapshot.tasks:
            fire_at = reminder_time(task, self._notifications)
            if fire_at is None or fire_at <= now:
                continue
            delay = (fire_at - now).total_seconds()
            callback = self._make_callback(task.id, self._generation)
            handle = self._timer_factory().call_later(delay, callback)
            self._armed[task.id] = ArmedReminder(task=task, fire_at=fire_at, handle=handle)

        logger.debug("Reminders resynced: %d armed", len(self._armed))

    def _timer_factory(self) -> TimerFactory:
        if self._timers is None:
            self._timers = asyncio.get_running_loop()
        return self._timers

    def _cancel_all(self) -> None:
        for reminder in self._armed.values():
            reminder.handle.cancel()
        self._armed.clear()

    def _make_callback(self, task_id: str, generation: int) -> Callable[[], None]:
        def _callback() -> None:
            self._fire(task_id, generation)

        return _callback

    # ---- delivery ----

    def _fire(self, task_id: str, generation: int) -> None:
        if generation != self._generation or task_id not in self._armed:
            # Superseded by a later resync; that resync owns the live timer.
            return
        reminder = self._armed.pop(task_id)

        task = reminder.task
        logger.info("Reminder due task_id=%s title=%r", task.id, task.title)

        if self._permission:
            try:
                self._sink.display(task)
            except Exception:
                logger.exception("NotificationSink.display failed task_id=%s", task.id)

        if self._notifications.sound_enabled:
            try:
                self._sink.play_sound()
            except Exception:
                logger.exception("NotificationSink.play_sound failed")
