# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKSTREAK_APP_NAME": "App display name (default: taskstreak).",
    "TASKSTREAK_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths
    "TASKSTREAK_DATA_DIR": "Local data directory for the store and logs (default: .local/taskstreak).",
    "TASKSTREAK_STORE_PATH": "SQLite file holding tasks/settings/stats/streak (default: <data dir>/taskstreak.sqlite3).",
    # Reminders
    "TASKSTREAK_NOTIFIER": "Where reminders go: console | none (default: console).",
    "TASKSTREAK_NOTIFICATIONS_ENABLED": "First-run default for reminders (true/false).",
    "TASKSTREAK_SOUND_ENABLED": "First-run default for the reminder bell (true/false).",
    "TASKSTREAK_DEFAULT_REMINDER_MINUTES": "First-run default lead time in minutes (default: 15).",
    # Defaults
    "TASKSTREAK_LANGUAGE": "First-run language tag (default: en).",
}
