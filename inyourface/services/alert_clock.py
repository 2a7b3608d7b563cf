# inyourface/services/alert_clock.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import AbstractSet, Iterable, Optional, Tuple

from inyourface.schemas.alert import AlertSession, AlertTrigger
from inyourface.schemas.engine_state import EngineState
from inyourface.schemas.meeting import Meeting
from inyourface.services.alert_session import activate

_ZERO = timedelta(0)


def find_alert_candidate(
    meetings: Iterable[Meeting],
    now: datetime,
    threshold: timedelta,
    skip_ids: AbstractSet[str] = frozenset(),
) -> Optional[Meeting]:
    """
    First meeting, in agenda order, whose start lies strictly inside
    (now, now + threshold).

    Alerts are edge-triggered: a meeting that has already started is never
    picked, however recently.
    """
    for meeting in meetings:
        if meeting.start is None or meeting.id in skip_ids:
            continue
        delta = meeting.start - now
        if _ZERO < delta < threshold:
            return meeting
    return None


def on_tick(
    state: EngineState,
    now: datetime,
    *,
    threshold: timedelta,
    expiry: timedelta,
) -> Tuple[EngineState, Optional[AlertSession]]:
    """
    One clock tick. While an alert is active nothing can trigger; otherwise
    at most one alert starts, for the earliest meeting in the window.
    """
    if state.alert is not None:
        return state, None

    candidate = find_alert_candidate(
        state.agenda.meetings,
        now,
        threshold,
        skip_ids=state.alerted_ids,
    )
    if candidate is None:
        return state, None

    return activate(state, candidate, now, expiry=expiry, trigger=AlertTrigger.CLOCK)
