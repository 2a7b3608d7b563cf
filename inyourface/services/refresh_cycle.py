# inyourface/services/refresh_cycle.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from inyourface.schemas.engine_state import EngineState
from inyourface.schemas.meeting import RawEvent
from inyourface.services.agenda_builder import build_agenda
from inyourface.services.meeting_normalizer import MeetingNormalizer


def apply_refresh(state: EngineState, raw_events: Iterable[RawEvent], now: datetime) -> EngineState:
    """
    Publish a fresh agenda built from `raw_events` as of `now`.

    Clears the permission-error flag and forgets alerted ids whose meetings
    are no longer on the agenda.
    """
    meetings = MeetingNormalizer.normalize_all(raw_events)
    agenda = build_agenda(meetings, now)
    current_ids = {m.id for m in agenda.meetings}

    return state.model_copy(
        update={
            "agenda": agenda,
            "permission_error": False,
            "last_refreshed_at": now,
            "alerted_ids": frozenset(i for i in state.alerted_ids if i in current_ids),
        }
    )


def apply_failure(state: EngineState) -> EngineState:
    """
    Keep the previous agenda and raise the sticky permission-error flag.
    """
    return state.model_copy(update={"permission_error": True})
