# inyourface/services/calendar_sources.py
from __future__ import annotations

import asyncio
import json
import logging
import re
import shlex
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from inyourface.core.config import Settings
from inyourface.core.errors import AcquisitionFault
from inyourface.schemas.meeting import RawEvent
from inyourface.services.graph_client import GraphClient, GraphClientError
from inyourface.services.meeting_normalizer import MeetingNormalizer

logger = logging.getLogger(__name__)

# Graph reports up to 7 fractional digits; datetime accepts at most 6.
_FRACTION_PATTERN = re.compile(r"(\.\d{6})\d+")


class CalendarSource(Protocol):
    """
    Anything able to deliver today's raw calendar events.

    Implementations raise AcquisitionFault when events cannot be read.
    """

    async def fetch_events(self) -> List[RawEvent]:
        ...


def _decode_events(text: str, origin: str) -> List[RawEvent]:
    try:
        payload = json.loads(text) if text.strip() else []
        return MeetingNormalizer.coerce_raw_events(payload)
    except ValueError as exc:
        raise AcquisitionFault(f"{origin} returned an unreadable payload: {exc}") from exc


class CommandCalendarSource:
    """
    Runs the desktop shell's calendar helper and reads the JSON array of
    events it prints on stdout.

    The helper exits non-zero when the user denied calendar access.
    """

    def __init__(self, command: str) -> None:
        if not command or not command.strip():
            raise ValueError("command is required")
        self._argv = shlex.split(command)

    async def fetch_events(self) -> List[RawEvent]:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise AcquisitionFault(f"Cannot start calendar helper: {exc}") from exc

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            raise

        if proc.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise AcquisitionFault(
                f"Calendar helper exited with status {proc.returncode}: {detail}"
            )

        return _decode_events(stdout.decode("utf-8", errors="replace"), "Calendar helper")


class FileCalendarSource:
    """
    Reads events from a JSON file with the same shape the helper prints.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def fetch_events(self) -> List[RawEvent]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise AcquisitionFault(f"Cannot read calendar file {self._path}: {exc}") from exc
        return _decode_events(text, f"Calendar file {self._path}")


class GraphCalendarSource:
    """
    Reads a user's calendar view through Microsoft Graph.

    Recurring events are expanded by `calendarView`; times are requested in UTC
    and converted to aware datetimes by the normalizer.
    """

    def __init__(
        self,
        graph_client: GraphClient,
        user_id: str,
        lookahead: timedelta = timedelta(hours=24),
    ) -> None:
        self.graph = graph_client
        self.user_id = user_id
        self.lookahead = lookahead

    async def fetch_events(self) -> List[RawEvent]:
        now = datetime.now(tz=timezone.utc)
        path: Optional[str] = f"/v1.0/users/{self.user_id}/calendarView"
        params: Optional[Dict[str, Any]] = {
            "startDateTime": now.isoformat(),
            "endDateTime": (now + self.lookahead).isoformat(),
            "$top": 100,
        }

        events: List[RawEvent] = []
        try:
            while path:
                payload = await self.graph.get_json(
                    path,
                    params=params,
                    headers={"Prefer": 'outlook.timezone="UTC"'},
                )
                events.extend(self._to_raw_event(item) for item in payload.get("value", []))
                # nextLink already carries the query string
                path = payload.get("@odata.nextLink")
                params = None
        except GraphClientError as exc:
            raise AcquisitionFault(str(exc)) from exc

        return events

    @staticmethod
    def _graph_datetime(dt_obj: Any) -> Optional[str]:
        """
        Converts Graph's {dateTime, timeZone} object into an ISO string.
        """
        if not isinstance(dt_obj, dict) or not dt_obj.get("dateTime"):
            return None
        text = _FRACTION_PATTERN.sub(r"\1", str(dt_obj["dateTime"]))
        if dt_obj.get("timeZone", "UTC") == "UTC" and not text.endswith("Z") and "+" not in text:
            text += "+00:00"
        return text

    @classmethod
    def _to_raw_event(cls, item: Dict[str, Any]) -> RawEvent:
        body = item.get("body") or {}
        location = item.get("location") or {}
        online = item.get("onlineMeeting") or {}

        return RawEvent(
            title=item.get("subject"),
            description=item.get("bodyPreview") or body.get("content"),
            location=location.get("displayName"),
            url=online.get("joinUrl") or item.get("webLink"),
            start=cls._graph_datetime(item.get("start")),
            end=cls._graph_datetime(item.get("end")),
            is_all_day=bool(item.get("isAllDay", False)),
        )


def build_calendar_source(settings: Settings) -> CalendarSource:
    """
    Construct the calendar source selected by CALENDAR_SOURCE.
    """
    kind = (settings.CALENDAR_SOURCE or "command").lower()

    if kind == "command":
        if not settings.CALENDAR_COMMAND:
            raise ValueError("CALENDAR_COMMAND must be set when CALENDAR_SOURCE=command")
        return CommandCalendarSource(settings.CALENDAR_COMMAND)

    if kind == "file":
        if not settings.CALENDAR_FILE:
            raise ValueError("CALENDAR_FILE must be set when CALENDAR_SOURCE=file")
        return FileCalendarSource(settings.CALENDAR_FILE)

    if kind == "graph":
        if not settings.GRAPH_USER_ID:
            raise ValueError("GRAPH_USER_ID must be set when CALENDAR_SOURCE=graph")
        graph_client = GraphClient(
            tenant_id=settings.GRAPH_TENANT_ID or "",
            client_id=settings.GRAPH_CLIENT_ID or "",
            client_secret=settings.GRAPH_CLIENT_SECRET or "",
            base_url=str(settings.GRAPH_BASE_URL or "https://graph.microsoft.com"),
            timeout_seconds=settings.FETCH_TIMEOUT_SECONDS,
        )
        return GraphCalendarSource(
            graph_client,
            user_id=settings.GRAPH_USER_ID,
            lookahead=timedelta(hours=settings.LOOKAHEAD_HOURS),
        )

    raise ValueError(f"Unknown CALENDAR_SOURCE: {settings.CALENDAR_SOURCE!r}")
