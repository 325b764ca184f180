# src/taskstreak/core/errors.py

from __future__ import annotations


class TaskstreakError(Exception):
    """Base class for errors raised by the task core."""


class ValidationError(TaskstreakError):
    """A command was rejected before any state was mutated."""


class TaskNotFound(ValidationError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id


class PersistenceError(TaskstreakError):
    """The durable store failed to read or write a value."""


class MalformedPersistedRecord(TaskstreakError):
    """A persisted record could not be decoded into its model type."""
