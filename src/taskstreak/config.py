# src/taskstreak/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKSTREAK"

NOTIFIERS = ("console", "none")

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    store_path: Path

    # ---- Reminders ----
    notifier: str
    notifications_enabled: bool
    sound_enabled: bool
    default_reminder_minutes: int

    # ---- Defaults for first run ----
    language: str

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "taskstreak")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskstreak"))
        store_path = _env_path(_k("STORE_PATH"), data_dir / "taskstreak.sqlite3")

        notifier = _env(_k("NOTIFIER"), "console").strip().lower()
        if notifier not in NOTIFIERS:
            notifier = "console"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_path=store_path,
            notifier=notifier,
            notifications_enabled=_env_bool(_k("NOTIFICATIONS_ENABLED"), True),
            sound_enabled=_env_bool(_k("SOUND_ENABLED"), True),
            default_reminder_minutes=max(0, _env_int(_k("DEFAULT_REMINDER_MINUTES"), 15)),
            language=_env(_k("LANGUAGE"), "en"),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
