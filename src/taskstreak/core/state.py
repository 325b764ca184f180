# src/taskstreak/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore
from .ports import NotificationSink


@dataclass
class AppState:
    # Process settings (config.Settings or a test stand-in).
    settings: object

    store: TaskStore
    scheduler: ReminderScheduler
    sink: NotificationSink
