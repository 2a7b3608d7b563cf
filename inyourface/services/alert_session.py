# inyourface/services/alert_session.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from inyourface.schemas.alert import AlertSession, AlertState, AlertTrigger, AlertView
from inyourface.schemas.engine_state import EngineState
from inyourface.schemas.meeting import Meeting

logger = logging.getLogger(__name__)


def alert_state(state: EngineState) -> AlertState:
    return AlertState.IDLE if state.alert is None else AlertState.ACTIVE


def activate(
    state: EngineState,
    meeting: Meeting,
    now: datetime,
    *,
    expiry: timedelta,
    trigger: AlertTrigger = AlertTrigger.CLOCK,
) -> Tuple[EngineState, Optional[AlertSession]]:
    """
    Idle -> Active for `meeting`.

    Rejected (state returned unchanged, no session) while another alert is
    active: only one session may exist at a time. Only clock activations
    mark the meeting as alerted; a manual one leaves the window alert armed.
    """
    if state.alert is not None:
        logger.info(
            "Alert for %r rejected: alert for %r already active",
            meeting.title,
            state.alert.meeting.title,
        )
        return state, None

    session = AlertSession(
        meeting=meeting,
        activated_at=now,
        expires_at=now + expiry,
        trigger=trigger,
    )
    logger.info("Alert activated (%s) for %r", trigger.value, meeting.title)

    alerted_ids = state.alerted_ids
    if trigger is AlertTrigger.CLOCK:
        alerted_ids = alerted_ids | {meeting.id}

    next_state = state.model_copy(update={"alert": session, "alerted_ids": alerted_ids})
    return next_state, session


def deactivate(state: EngineState) -> Tuple[EngineState, Optional[AlertSession]]:
    """
    Active -> Idle. Returns the closed session, or None if already idle.
    """
    if state.alert is None:
        return state, None
    closed = state.alert
    return state.model_copy(update={"alert": None}), closed


def expire_if_due(state: EngineState, now: datetime) -> Tuple[EngineState, Optional[AlertSession]]:
    """
    Close the active session once its deadline has passed.
    """
    if state.alert is None or not state.alert.is_expired(now):
        return state, None
    logger.info("Alert for %r expired", state.alert.meeting.title)
    return deactivate(state)


def build_alert_view(state: EngineState, now: datetime) -> AlertView:
    session = state.alert
    if session is None:
        return AlertView(state=AlertState.IDLE)

    seconds_until_start: float | None = None
    if session.meeting.start is not None:
        seconds_until_start = (session.meeting.start - now).total_seconds()

    return AlertView(
        state=AlertState.ACTIVE,
        meeting=session.meeting,
        trigger=session.trigger,
        activated_at=session.activated_at,
        expires_at=session.expires_at,
        seconds_until_start=seconds_until_start,
    )
