# src/taskstreak/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "taskstreak.log"

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Components that log on every commit or timer; console shows WARNING+ only.
_CHATTY_PREFIXES = (
    "taskstreak.storage.",
    "taskstreak.tasks.reminder_scheduler",
    "taskstreak.tasks.task_store",
)


class _ConsoleNoiseFilter(logging.Filter):
    """Console gets taskstreak INFO, chatty components at WARNING, everyone else at ERROR."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= _console_threshold(record.name)


def _console_threshold(name: str) -> int:
    if name.startswith(_CHATTY_PREFIXES):
        return logging.WARNING
    if name.startswith("taskstreak."):
        return logging.NOTSET
    # py.warnings and third-party loggers.
    return logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskstreak",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered) and to <log_dir>/taskstreak.log (full).

    Replaces any handlers already on the root logger, so calling it again is safe.
    Returns the log file path.
    """
    log_path = Path(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_ConsoleNoiseFilter())

    logfile = logging.FileHandler(log_path, encoding="utf-8")
    logfile.setLevel(file_level)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.DEBUG)
    for handler in (console, logfile):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.captureWarnings(True)
    return log_path
