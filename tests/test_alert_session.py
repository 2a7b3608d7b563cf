# tests/test_alert_session.py
from datetime import timedelta

from inyourface.schemas.alert import AlertState, AlertTrigger
from inyourface.schemas.engine_state import EngineState
from inyourface.services.alert_session import (
    activate,
    alert_state,
    build_alert_view,
    deactivate,
    expire_if_due,
)
from inyourface.services.meeting_normalizer import MeetingNormalizer

from conftest import NOW, raw_event

EXPIRY = timedelta(minutes=10)


def _meeting(title="Standup", start="2025-01-10T10:00:00+00:00"):
    return MeetingNormalizer.normalize(raw_event(title, start))


def test_activate_from_idle():
    state, session = activate(EngineState(), _meeting(), NOW, expiry=EXPIRY)

    assert session is not None
    assert alert_state(state) is AlertState.ACTIVE
    assert session.activated_at == NOW
    assert session.expires_at == NOW + EXPIRY


def test_second_activation_is_rejected():
    state, first = activate(EngineState(), _meeting("A"), NOW, expiry=EXPIRY)

    same_state, second = activate(
        state,
        _meeting("B"),
        NOW,
        expiry=EXPIRY,
        trigger=AlertTrigger.MANUAL,
    )

    assert second is None
    assert same_state is state
    assert same_state.alert.meeting.title == "A"


def test_deactivate_returns_closed_session():
    state, session = activate(EngineState(), _meeting(), NOW, expiry=EXPIRY)

    idle, closed = deactivate(state)

    assert closed == session
    assert alert_state(idle) is AlertState.IDLE
    # A second dismissal has nothing to close.
    assert deactivate(idle) == (idle, None)


def test_expiry_only_after_deadline():
    state, _ = activate(EngineState(), _meeting(), NOW, expiry=EXPIRY)

    still_active, expired = expire_if_due(state, NOW + EXPIRY - timedelta(seconds=1))
    assert expired is None
    assert still_active.alert is not None

    idle, expired = expire_if_due(state, NOW + EXPIRY)
    assert expired is not None
    assert idle.alert is None


def test_alert_view_reports_time_until_start():
    state, _ = activate(EngineState(), _meeting(), NOW, expiry=EXPIRY)

    view = build_alert_view(state, NOW)

    assert view.state is AlertState.ACTIVE
    assert view.meeting.title == "Standup"
    assert view.seconds_until_start == 240.0
    assert build_alert_view(EngineState(), NOW).state is AlertState.IDLE


def test_only_clock_activation_marks_meeting_alerted():
    meeting = _meeting()

    manual, _ = activate(EngineState(), meeting, NOW, expiry=EXPIRY, trigger=AlertTrigger.MANUAL)
    clock, _ = activate(EngineState(), meeting, NOW, expiry=EXPIRY, trigger=AlertTrigger.CLOCK)

    assert meeting.id not in manual.alerted_ids
    assert meeting.id in clock.alerted_ids
