# src/taskstreak/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the notification sink for this host,
- wires store, scheduler and sink into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import KeyValueStore, NotificationSink
from ..core.state import AppState
from ..notifications.sinks import ConsoleNotificationSink, NullNotificationSink
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_models import AppSettings, NotificationSettings, ReminderAction
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_path.parent.mkdir(parents=True, exist_ok=True)


def default_app_settings(settings) -> AppSettings:
    """First-run user settings; persisted settings override these."""
    return AppSettings(
        notifications=NotificationSettings(
            enabled=settings.notifications_enabled,
            sound_enabled=settings.sound_enabled,
            reminder_lead_minutes=settings.default_reminder_minutes,
        ),
        language=settings.language,
    )


def create_initial_state(*, settings=None, kv: KeyValueStore | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and the durable store injectable makes the app easier to
    test. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if kv is None:
        _ensure_local_dirs(settings)
        kv = SqliteKeyValueStore(settings.store_path)

    store = TaskStore(kv, default_settings=default_app_settings(settings))

    # Actions from the sink go back in as commands on the store.
    def _on_action(action: ReminderAction) -> None:
        store.handle_action(action)

    sink: NotificationSink
    if settings.notifier == "console":
        sink = ConsoleNotificationSink(_on_action)
    else:
        sink = NullNotificationSink()
    logger.debug("Notification sink: %s", type(sink).__name__)

    return AppState(
        settings=settings,
        store=store,
        scheduler=ReminderScheduler(sink),
        sink=sink,
    )
