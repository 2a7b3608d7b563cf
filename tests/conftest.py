# tests/conftest.py
import asyncio
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "inyourface-test-logs"))

from inyourface.core.config import Settings  # noqa: E402
from inyourface.core.errors import AcquisitionFault, HostSignalFault  # noqa: E402
from inyourface.main import create_app  # noqa: E402
from inyourface.schemas.meeting import RawEvent  # noqa: E402
from inyourface.services.engine import MeetingAlertEngine  # noqa: E402

NOW = datetime(2025, 1, 10, 9, 56, tzinfo=timezone.utc)


def raw_event(
    title: str,
    start: str,
    end: Optional[str] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
    url: Optional[str] = None,
    is_all_day: bool = False,
) -> RawEvent:
    payload: Dict[str, Any] = {
        "title": title,
        "start": start,
        "end": end or start,
        "description": description,
        "location": location,
        "url": url,
        "isAllDay": is_all_day,
    }
    return RawEvent.model_validate(payload)


class FakeClock:
    """
    Mutable clock handed to the engine so tests control "now".
    """

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value


class FakeCalendarSource:
    """
    Stand-in for a calendar source.

    - `events` is returned on every fetch.
    - `fail=True` raises AcquisitionFault instead.
    - `gates` (optional) holds one asyncio.Event per upcoming call; a fetch
      waits on its gate before answering, which lets tests finish fetches
      out of order.
    """

    def __init__(self, events: Optional[List[RawEvent]] = None) -> None:
        self.events: List[RawEvent] = list(events or [])
        self.fail = False
        self.calls = 0
        self.gates: List[asyncio.Event] = []
        self.responses: List[List[RawEvent]] = []

    async def fetch_events(self) -> List[RawEvent]:
        self.calls += 1
        response = self.responses.pop(0) if self.responses else list(self.events)
        if self.gates:
            gate = self.gates.pop(0)
            await gate.wait()
        if self.fail:
            raise AcquisitionFault("calendar access denied")
        return response


class FakeHostBridge:
    """
    Records every host signal; optionally fails them all.
    """

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []

    async def _record(self, *call) -> None:
        self.calls.append(call)
        if self.fail:
            raise HostSignalFault(f"host refused {call[0]}")

    async def enter_alert_presentation(self) -> None:
        await self._record("enter")

    async def exit_alert_presentation(self) -> None:
        await self._record("exit")

    async def open_external(self, url: str) -> None:
        await self._record("open", url)


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "APP_ENV": "test",
        "ALERT_THRESHOLD_MS": 5000,
        "TICK_INTERVAL_SECONDS": 1.0,
        "REFRESH_INTERVAL_SECONDS": 300.0,
        "ALERT_EXPIRY_SECONDS": 600.0,
        "FETCH_TIMEOUT_SECONDS": 5.0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def source() -> FakeCalendarSource:
    return FakeCalendarSource(
        [
            raw_event(
                "Standup",
                "2025-01-10T10:00:00+00:00",
                "2025-01-10T10:15:00+00:00",
                description="join: https://zoom.us/j/123 thanks",
            ),
            raw_event(
                "Design review",
                "2025-01-10T10:03:00+00:00",
                "2025-01-10T11:00:00+00:00",
                location="https://meet.google.com/abc-defg-hij",
            ),
        ]
    )


@pytest.fixture
def bridge() -> FakeHostBridge:
    return FakeHostBridge()


@pytest.fixture
def engine(source, bridge, clock) -> MeetingAlertEngine:
    return MeetingAlertEngine(source=source, bridge=bridge, settings=make_settings(), clock=clock)


@pytest.fixture
def client(engine) -> TestClient:
    """
    TestClient over an app wired to the fake source, bridge and clock.
    """
    app = create_app(engine=engine)
    with TestClient(app) as test_client:
        yield test_client
