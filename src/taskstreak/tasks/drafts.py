# src/taskstreak/tasks/drafts.py

from __future__ import annotations

"""
TaskDraft helpers.

- resolve_due(): combine a draft's date and time into one due datetime
- parse_transcript(): turn a recognised speech phrase into a TaskDraft

The transcript parser only consumes text; audio capture lives in the host.
"""

import re
from datetime import date, datetime, time, timedelta, tzinfo

from .task_models import Priority, TaskDraft

END_OF_DAY = time(23, 59)

_PREFIX_RE = re.compile(
    r"^(add task|create task|new task|remind me to|i need to|add|create|make|schedule|todo)\b",
    re.IGNORECASE,
)
_HIGH_RE = re.compile(r"\b(urgent|important|high priority|asap|critical)\b", re.IGNORECASE)
_LOW_RE = re.compile(r"\b(low priority|later|someday|when possible)\b", re.IGNORECASE)
_TIME_RE = re.compile(r"\bat (\d{1,2})(?::?(\d{2}))?\s*(a\.m\.|p\.m\.|am|pm)?", re.IGNORECASE)
_LEADING_JOINER_RE = re.compile(r"^(and|with|for|to)\s+", re.IGNORECASE)
_SENTENCE_RE = re.compile(r"[.!?]")

# (pattern, days from today)
_DAY_WORDS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"\b(today|this afternoon|this evening|tonight)\b", re.IGNORECASE), 0),
    (re.compile(r"\btomorrow\b", re.IGNORECASE), 1),
    (re.compile(r"\bnext week\b", re.IGNORECASE), 7),
)


def resolve_due(
    due_date: date | None, due_time: time | None, *, tz: tzinfo | None = None
) -> datetime | None:
    """
    Combine date and time into an aware datetime (local time unless `tz` is given).

    A date alone means the end of that day; a time without a date is ignored.
    """
    if due_date is None:
        return None
    combined = datetime.combine(due_date, due_time or END_OF_DAY)
    if tz is not None:
        return combined.replace(tzinfo=tz)
    return combined.astimezone()


def _squash(text: str) -> str:
    return re.sub(r"\s{2,}", " ", text).strip()


def _parse_clock(m: re.Match[str]) -> time | None:
    hour = int(m.group(1))
    minute = int(m.group(2) or 0)
    meridiem = (m.group(3) or "").lower()
    if "p" in meridiem and hour != 12:
        hour += 12
    elif "a" in meridiem and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def parse_transcript(text: str, *, now: datetime | None = None) -> TaskDraft:
    """
    Best-effort parse of phrases like
    "remind me to call mom tomorrow at 5pm. Ask about the trip".
    """
    now = now or datetime.now().astimezone()
    rest = _PREFIX_RE.sub("", text.strip(), count=1).strip()

    priority = Priority.MEDIUM
    if _HIGH_RE.search(rest):
        priority = Priority.HIGH
        rest = _HIGH_RE.sub("", rest)
    elif _LOW_RE.search(rest):
        priority = Priority.LOW
        rest = _LOW_RE.sub("", rest)

    due_date: date | None = None
    for pattern, offset in _DAY_WORDS:
        if pattern.search(rest):
            due_date = now.date() + timedelta(days=offset)
            rest = pattern.sub("", rest, count=1)
            break

    due_time: time | None = None
    m = _TIME_RE.search(rest)
    if m:
        due_time = _parse_clock(m)
        rest = rest[: m.start()] + rest[m.end() :]
        if due_time is not None and due_date is None:
            # "at 9am" with no day word: the next occurrence of that time.
            due_date = now.date()
            if datetime.combine(due_date, due_time, tzinfo=now.tzinfo) <= now:
                due_date += timedelta(days=1)

    sentences = [_squash(s) for s in _SENTENCE_RE.split(rest) if s.strip()]
    title = _LEADING_JOINER_RE.sub("", sentences[0]).strip() if sentences else ""
    if title:
        title = title[0].upper() + title[1:]
    description = ". ".join(sentences[1:]) or None

    return TaskDraft(
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
        due_time=due_time,
    )
