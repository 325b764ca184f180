# tests/test_streak.py

from __future__ import annotations

import random
from dataclasses import replace
from datetime import date, datetime, timedelta

from taskstreak.tasks.streak import compute_streak, current_run, day_qualifies
from taskstreak.tasks.task_models import Priority, StreakInfo, Task

TODAY = date(2026, 10, 18)


def _task(task_id: str, due: date | None, *, completed: bool = False) -> Task:
    created = datetime(2026, 10, 1, 8, 0).astimezone()
    due_at = datetime(due.year, due.month, due.day, 18, 0).astimezone() if due else None
    return Task(
        id=task_id,
        title=task_id,
        completed=completed,
        priority=Priority.MEDIUM,
        created_at=created,
        updated_at=created,
        due_at=due_at,
    )


def _days(*offsets: int) -> tuple[str, ...]:
    return tuple(sorted((TODAY + timedelta(days=o)).isoformat() for o in offsets))


def test_day_with_no_due_tasks_never_qualifies() -> None:
    assert day_qualifies([], TODAY) is False
    assert day_qualifies([_task("a", None, completed=True)], TODAY) is False

    streak = compute_streak([_task("a", None, completed=True)], StreakInfo(), TODAY)
    assert streak.qualifying_days == ()
    assert streak.current == 0


def test_two_completed_tasks_qualify_until_a_third_open_one_is_added() -> None:
    tasks = [_task("a", TODAY, completed=True), _task("b", TODAY, completed=True)]
    first = compute_streak(tasks, StreakInfo(), TODAY)
    assert TODAY.isoformat() in first.qualifying_days
    assert first.current == 1

    tasks.append(_task("c", TODAY))
    second = compute_streak(tasks, first, TODAY)
    assert TODAY.isoformat() not in second.qualifying_days
    assert second.current == 0
    assert second.longest == 1


def test_run_ending_yesterday_counts_before_today_resolves() -> None:
    previous = StreakInfo(current=2, longest=2, qualifying_days=_days(-2, -1))
    open_today = [_task("a", TODAY)]

    pending = compute_streak(open_today, previous, TODAY)
    assert pending.current == 2

    done = compute_streak([replace(open_today[0], completed=True)], pending, TODAY)
    assert done.current == 3
    assert done.longest == 3
    assert done.qualifying_days == _days(-2, -1, 0)


def test_longest_is_kept_from_previous_record() -> None:
    previous = StreakInfo(current=0, longest=7, qualifying_days=_days(-1))
    streak = compute_streak([_task("a", TODAY, completed=True)], previous, TODAY)
    assert streak.current == 2
    assert streak.longest == 7


def test_gap_resets_current_streak() -> None:
    previous = StreakInfo(longest=3, qualifying_days=_days(-5, -4, -3))
    streak = compute_streak([], previous, TODAY)
    assert streak.current == 0
    assert streak.longest == 3


def test_other_days_are_not_revalidated() -> None:
    yesterday = TODAY - timedelta(days=1)
    previous = StreakInfo(current=1, longest=1, qualifying_days=_days(-1))
    # An open task due yesterday, added after the fact.
    late = [_task("late", yesterday)]

    streak = compute_streak(late, previous, TODAY)

    assert yesterday.isoformat() in streak.qualifying_days
    assert streak.current == 1


def test_last_all_complete_date_is_kept_when_today_does_not_qualify() -> None:
    earlier = TODAY - timedelta(days=3)
    previous = StreakInfo(last_all_complete_date=earlier)
    assert compute_streak([], previous, TODAY).last_all_complete_date == earlier
    assert compute_streak([_task("a", TODAY, completed=True)], previous, TODAY).last_all_complete_date == TODAY


def test_malformed_day_keys_are_dropped() -> None:
    previous = StreakInfo(qualifying_days=("yesterday", (TODAY - timedelta(days=1)).isoformat()))
    streak = compute_streak([], previous, TODAY)
    assert streak.qualifying_days == _days(-1)
    assert streak.current == 1


def test_current_run_ignores_future_days() -> None:
    days = {TODAY + timedelta(days=1), TODAY - timedelta(days=1)}
    assert current_run(days, TODAY) == 1


def test_longest_never_below_current_for_random_histories() -> None:
    rng = random.Random(42)
    streak = StreakInfo()
    longest_seen = 0
    tasks: list[Task] = []
    day = TODAY

    for step in range(300):
        roll = rng.random()
        if roll < 0.35:
            tasks.append(_task(f"t{step}", day + timedelta(days=rng.randint(-1, 2))))
        elif roll < 0.7 and tasks:
            i = rng.randrange(len(tasks))
            tasks[i] = replace(tasks[i], completed=not tasks[i].completed)
        elif roll < 0.8 and tasks:
            tasks.pop(rng.randrange(len(tasks)))
        elif roll < 0.9:
            day += timedelta(days=1)

        streak = compute_streak(tasks, streak, day)
        assert streak.longest >= streak.current
        assert streak.longest >= longest_seen
        longest_seen = streak.longest
