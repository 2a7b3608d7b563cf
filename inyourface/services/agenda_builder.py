# inyourface/services/agenda_builder.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from inyourface.schemas.agenda import Agenda
from inyourface.schemas.meeting import Meeting


def end_of_day(now: datetime) -> datetime:
    """
    Last instant of `now`'s calendar day (23:59:59.999999), in `now`'s
    timezone. The agenda filter is strict, so a meeting starting at exactly
    this microsecond is not part of today.
    """
    return now.replace(hour=23, minute=59, second=59, microsecond=999999)


def is_remaining_today(meeting: Meeting, now: datetime, day_end: datetime) -> bool:
    return (
        meeting.start is not None
        and not meeting.is_all_day
        and now < meeting.start < day_end
    )


def build_agenda(meetings: Iterable[Meeting], now: datetime) -> Agenda:
    """
    Build today's agenda relative to `now`.

    Keeps timed meetings that start strictly after `now` and strictly before
    the end of the current day, sorted ascending by start (ties keep source
    order). `up_next` is the first of them and `later` everything else,
    always derived from that same `up_next`.

    An empty result is a normal "no meetings" agenda, not an error.
    """
    day_end = end_of_day(now)
    remaining = sorted(
        (m for m in meetings if is_remaining_today(m, now, day_end)),
        key=lambda m: m.start,
    )

    up_next = remaining[0] if remaining else None
    later = tuple(m for m in remaining if up_next is not None and m.id != up_next.id)

    return Agenda(
        meetings=tuple(remaining),
        up_next=up_next,
        later=later,
        built_at=now,
    )


def format_countdown(start: datetime, now: datetime) -> str:
    """
    Human countdown until `start`: 'in 1h 5m' from an hour out, otherwise
    'in 3m 12s'. Past starts read as 'in 0m 0s'.
    """
    total_seconds = max(int((start - now).total_seconds()), 0)
    minutes, seconds = divmod(total_seconds, 60)

    if minutes >= 60:
        hours, minutes = divmod(minutes, 60)
        return f"in {hours}h {minutes}m"
    return f"in {minutes}m {seconds}s"
