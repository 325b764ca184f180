# src/taskstreak/notifications/sinks.py

from __future__ import annotations

"""
NotificationSink implementations.

The host picks one at startup:
- ConsoleNotificationSink for an interactive terminal,
- NullNotificationSink when there is nowhere to show reminders.
"""

import logging
import sys
from collections.abc import Callable
from datetime import datetime
from typing import TextIO

from ..tasks.task_models import ReminderAction, ReminderActionKind, Task

logger = logging.getLogger(__name__)

ActionChannel = Callable[[ReminderAction], None]


class NullNotificationSink:
    """Host without notification support: permission is never granted."""

    async def request_permission(self) -> bool:
        return False

    def display(self, task: Task) -> None:
        return

    def play_sound(self) -> None:
        return


class ConsoleNotificationSink:
    """
    Prints reminders to a terminal and rings the bell for sound.

    The user answers the most recent reminder with act("complete"|"dismiss");
    the answer is forwarded as a ReminderAction on the action channel
    (TaskStore.handle_action in the CLI).
    """

    def __init__(self, actions: ActionChannel | None = None, *, out: TextIO | None = None) -> None:
        self._actions = actions
        self._out = out or sys.stdout
        self._last_task_id: str | None = None

    async def request_permission(self) -> bool:
        return True

    def display(self, task: Task) -> None:
        self._last_task_id = task.id
        ts = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")
        due = task.due_at.strftime("%H:%M") if task.due_at else "?"
        lines = [f"[{ts}] Task due at {due}: {task.title}"]
        if task.description:
            lines.append(f"    {task.description}")
        lines.append("    (/ack complete | /ack dismiss)")
        print("\n".join(lines), file=self._out, flush=True)

    def play_sound(self) -> None:
        self._out.write("\a")
        self._out.flush()

    @property
    def last_task_id(self) -> str | None:
        return self._last_task_id

    def act(self, kind: ReminderActionKind | str) -> bool:
        """Answer the last displayed reminder. Returns False if there is none."""
        if self._last_task_id is None or self._actions is None:
            return False
        action = ReminderAction(task_id=self._last_task_id, kind=ReminderActionKind(kind))
        self._last_task_id = None
        logger.debug("Reminder action %s task_id=%s", action.kind.value, action.task_id)
        self._actions(action)
        return True
