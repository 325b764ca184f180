# tests/test_drafts.py

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytest

from taskstreak.tasks.drafts import parse_transcript, resolve_due
from taskstreak.tasks.task_models import Priority

NOW = datetime(2026, 10, 18, 9, 0).astimezone()


def test_resolve_due_combines_date_and_time() -> None:
    assert resolve_due(None, time(9, 0)) is None

    dt = resolve_due(date(2026, 10, 20), time(7, 30))
    assert dt is not None and dt.tzinfo is not None
    assert (dt.date(), dt.hour, dt.minute) == (date(2026, 10, 20), 7, 30)

    eod = resolve_due(date(2026, 10, 20), None)
    assert (eod.hour, eod.minute) == (23, 59)

    utc = resolve_due(date(2026, 10, 20), time(7, 30), tz=timezone.utc)
    assert utc.tzinfo is timezone.utc
    assert utc.hour == 7


@pytest.mark.parametrize(
    ("text", "title", "priority", "due_date", "due_time"),
    [
        ("remind me to call mom tomorrow at 5pm", "Call mom", Priority.MEDIUM, date(2026, 10, 19), time(17, 0)),
        ("add task urgent fix the build today", "Fix the build", Priority.HIGH, date(2026, 10, 18), None),
        ("clean garage someday", "Clean garage", Priority.LOW, None, None),
        ("new task water plants next week at 7:15 am", "Water plants", Priority.MEDIUM, date(2026, 10, 25), time(7, 15)),
        ("i need to pay rent at 12am", "Pay rent", Priority.MEDIUM, date(2026, 10, 19), time(0, 0)),
    ],
)
def test_parse_transcript(text, title, priority, due_date, due_time) -> None:
    draft = parse_transcript(text, now=NOW)
    assert draft.title == title
    assert draft.priority is priority
    assert draft.due_date == due_date
    assert draft.due_time == due_time


def test_parse_transcript_time_only_picks_next_occurrence() -> None:
    later = parse_transcript("stand-up at 10:30", now=NOW)
    assert (later.due_date, later.due_time) == (NOW.date(), time(10, 30))

    earlier = parse_transcript("stand-up at 8", now=NOW)
    assert earlier.due_date == NOW.date() + timedelta(days=1)


def test_parse_transcript_splits_description() -> None:
    draft = parse_transcript("buy groceries. Milk and eggs! Also bread", now=NOW)
    assert draft.title == "Buy groceries"
    assert draft.description == "Milk and eggs. Also bread"


def test_parse_transcript_with_nothing_left_gives_empty_title() -> None:
    assert parse_transcript("add task", now=NOW).title == ""
