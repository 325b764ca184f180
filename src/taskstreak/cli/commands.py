# src/taskstreak/cli/commands.py

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, cast

from ..core.errors import ValidationError
from ..core.state import AppState
from ..tasks.drafts import parse_transcript, resolve_due
from ..tasks.queries import (
    SortKey,
    StatusFilter,
    daily_progress,
    export_payload,
    filter_tasks,
    sort_tasks,
    tasks_for_day,
)
from ..tasks.task_models import Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except ValidationError as e:
            return f"Rejected: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _short(task_id: str) -> str:
    return task_id[:8]


def _fmt_task(task: Task) -> str:
    mark = "x" if task.completed else " "
    due = task.due_at.strftime("%Y-%m-%d %H:%M") if task.due_at else "-"
    return f"[{mark}] {_short(task.id)}  {task.priority.value:<6} {due:<16}  {task.title}"


def _resolve_id(state: AppState, prefix: str) -> str:
    matches = [t.id for t in state.store.tasks if t.id.startswith(prefix)]
    if len(matches) != 1:
        raise ValidationError(
            f"no task matches {prefix!r}" if not matches else f"{prefix!r} is ambiguous"
        )
    return matches[0]


_EDITABLE = ("title", "description", "priority")


def _parse_on_off(args: list[str]) -> bool | None:
    if not args:
        return None
    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        return True
    if arg in ("off", "0", "false", "no"):
        return False
    return None


def _parse_due(raw: str) -> datetime | None:
    if raw.lower() in ("", "none", "-"):
        return None
    try:
        if "T" in raw or " " in raw:
            return datetime.fromisoformat(raw).astimezone()
        return resolve_due(date.fromisoformat(raw), None)
    except ValueError:
        raise ValidationError(f"bad due date {raw!r} (use YYYY-MM-DD or YYYY-MM-DDTHH:MM)") from None


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add remind me to call mom tomorrow at 5pm"""
    if not args:
        return "Usage: /add <what to do> [today|tomorrow|next week] [at HH:MM]"
    draft = parse_transcript(" ".join(args))
    task = state.store.create(draft)
    return f"Added {_fmt_task(task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    """/list [all|pending|completed|overdue] [due_date|priority|created|alphabetical]"""
    try:
        status = StatusFilter(args[0]) if args else StatusFilter.ALL
        sort_by = SortKey(args[1]) if len(args) > 1 else SortKey.DUE_DATE
    except ValueError:
        return "Usage: /list [all|pending|completed|overdue] [due_date|priority|created|alphabetical]"
    tasks = sort_tasks(filter_tasks(state.store.tasks, status=status), by=sort_by)
    if not tasks:
        return f"No {status.value} tasks."
    lines = [_fmt_task(t) for t in tasks]
    lines.append(f"Showing {len(tasks)} of {len(state.store.tasks)} tasks")
    return "\n".join(lines)


def cmd_today(state: AppState, args: list[str]) -> str:
    today = datetime.now().astimezone().date()
    tasks = sort_tasks(tasks_for_day(state.store.tasks, today))
    if not tasks:
        return "Nothing due today."
    lines = [_fmt_task(t) for t in tasks]
    lines.append(f"Progress: {daily_progress(tasks, today):.0f}%")
    return "\n".join(lines)


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task = state.store.toggle_completed(_resolve_id(state, args[0]))
    return f"{'Completed' if task.completed else 'Reopened'}: {task.title}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> title=... priority=high due=2026-10-20T09:00"""
    if len(args) < 2:
        return "Usage: /edit <id> title=<text> | description=<text> | priority=<p> | due=<date>"
    task_id = _resolve_id(state, args[0])

    changes: dict[str, Any] = {}
    for item in args[1:]:
        key, sep, value = item.partition("=")
        if not sep:
            # Continuation of the previous free-text value.
            if not changes:
                return f"Expected field=value, got {item!r}"
            last = next(reversed(changes))
            changes[last] = f"{changes[last]} {item}"
            continue
        key = key.lower()
        if key == "due":
            changes["due_at"] = _parse_due(value)
        elif key in _EDITABLE:
            changes[key] = value
        else:
            return f"Cannot edit {key!r}; editable: title, description, priority, due"

    task = state.store.update(task_id, changes)
    return f"Updated {_fmt_task(task)}"


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    task_id = _resolve_id(state, args[0])
    state.store.delete(task_id)
    return f"Deleted {_short(task_id)}"


def cmd_stats(state: AppState, args: list[str]) -> str:
    stats = state.store.snapshot.stats
    rate = 100.0 * stats.completed_tasks / stats.total_tasks if stats.total_tasks else 0.0
    lines = [
        "Stats:",
        f"  Tasks: {stats.total_tasks} ({stats.completed_tasks} completed, {rate:.0f}%)",
    ]
    for week, n in stats.weekly_completed[-4:]:
        lines.append(f"  {week}: {n} completed")
    return "\n".join(lines)


def cmd_streak(state: AppState, args: list[str]) -> str:
    streak = state.store.snapshot.streak
    last = streak.last_all_complete_date.isoformat() if streak.last_all_complete_date else "never"
    return (
        "Streak:\n"
        f"  Current: {streak.current} day(s)\n"
        f"  Longest: {streak.longest} day(s)\n"
        f"  Last all-complete day: {last}"
    )


def cmd_notify(state: AppState, args: list[str]) -> str:
    enabled = _parse_on_off(args)
    if enabled is None:
        now = state.store.settings.notifications.enabled
        return f"Reminders are {'ON' if now else 'OFF'}. Use /notify on or /notify off."
    state.store.update_settings({"notifications": {"enabled": enabled}})
    return f"Reminders {'enabled' if enabled else 'disabled'}."


def cmd_sound(state: AppState, args: list[str]) -> str:
    enabled = _parse_on_off(args)
    if enabled is None:
        return "Usage: /sound on or /sound off."
    state.store.update_settings({"notifications": {"sound_enabled": enabled}})
    return f"Reminder sound {'enabled' if enabled else 'disabled'}."


def cmd_lead(state: AppState, args: list[str]) -> str:
    if not args:
        lead = state.store.settings.notifications.reminder_lead_minutes
        return f"Reminders fire {lead} minute(s) before the due time."
    try:
        minutes = int(args[0])
    except ValueError:
        return "Usage: /lead <minutes>"
    state.store.update_settings({"notifications": {"reminder_lead_minutes": minutes}})
    return f"Reminder lead set to {minutes} minute(s)."


def cmd_ack(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/ack complete | /ack dismiss -> answer the last reminder"""
    kind = args[0].lower() if args else "dismiss"
    if kind not in ("complete", "dismiss"):
        return "Usage: /ack complete | /ack dismiss"
    act = getattr(state.sink, "act", None)
    if act is None or not act(kind):
        return "No reminder to answer."
    return "Done." if kind == "complete" else "Dismissed."


def cmd_export(state: AppState, args: list[str]) -> str:
    return json.dumps(export_payload(state.store.snapshot), ensure_ascii=False, indent=2)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task from a phrase: /add call mom tomorrow at 5pm.")
registry.register(
    "list", cmd_list, help_text="List tasks: /list [filter] [sort].", aliases=["ls"]
)
registry.register("today", cmd_today, help_text="Tasks due today and progress.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> field=value ...")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del"])
registry.register("stats", cmd_stats, help_text="Show task statistics.")
registry.register("streak", cmd_streak, help_text="Show the completion streak.")
registry.register("notify", cmd_notify, help_text="Reminders on/off: /notify on | /notify off.")
registry.register("sound", cmd_sound, help_text="Reminder sound on/off: /sound on | /sound off.")
registry.register("lead", cmd_lead, help_text="Minutes before due time to remind: /lead 15.")
registry.register("ack", cmd_ack, help_text="Answer the last reminder: /ack complete | dismiss.")
registry.register("export", cmd_export, help_text="Print a JSON backup of tasks and settings.")
