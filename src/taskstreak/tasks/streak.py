# src/taskstreak/tasks/streak.py

from __future__ import annotations

"""
Day-bucketed streak calculation.

A calendar day "qualifies" when it has at least one task due and every task
due that day is completed. Only today's bucket is re-evaluated on each pass;
days recorded earlier stay as they were, even if their tasks change later.
"""

import logging
from collections.abc import Iterable
from datetime import date, timedelta

from .task_models import StreakInfo, Task

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


def tasks_due_on(tasks: Iterable[Task], day: date) -> list[Task]:
    return [t for t in tasks if t.due_at is not None and t.due_at.date() == day]


def day_qualifies(tasks: Iterable[Task], day: date) -> bool:
    due = tasks_due_on(tasks, day)
    return bool(due) and all(t.completed for t in due)


def _parse_days(keys: Iterable[str]) -> set[date]:
    out: set[date] = set()
    for key in keys:
        try:
            out.add(date.fromisoformat(key))
        except ValueError:
            logger.warning("Dropping malformed streak day key %r", key)
    return out


def current_run(days: set[date], today: date) -> int:
    """
    Length of the consecutive run ending today (or yesterday while today is
    still open). Runs that ended before yesterday count as zero.
    """
    past = [d for d in days if d <= today]
    if not past or (today - max(past)).days > 1:
        return 0

    cursor = today if today in days else today - _ONE_DAY
    run = 0
    while cursor in days:
        run += 1
        cursor -= _ONE_DAY
    return run


def compute_streak(tasks: Iterable[Task], previous: StreakInfo, today: date) -> StreakInfo:
    """Recompute the streak record for `today` from the task list and the previous record."""
    tasks = list(tasks)
    today_key = today.isoformat()

    days = _parse_days(previous.qualifying_days)
    qualifies = day_qualifies(tasks, today)
    if qualifies:
        days.add(today)
    else:
        days.discard(today)

    current = current_run(days, today)
    longest = max(previous.longest, current)

    if qualifies and today_key not in previous.qualifying_days:
        logger.info("Day %s qualified; streak=%d longest=%d", today_key, current, longest)

    return StreakInfo(
        current=current,
        longest=longest,
        last_all_complete_date=today if qualifies else previous.last_all_complete_date,
        qualifying_days=tuple(sorted(d.isoformat() for d in days)),
    )
