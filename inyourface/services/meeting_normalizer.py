# inyourface/services/meeting_normalizer.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from inyourface.schemas.meeting import Meeting, RawEvent
from inyourface.services.link_extractor import (
    build_search_text,
    classify_platform,
    extract_video_link,
)

_TRUE_STRINGS = {"true", "1", "yes", "y"}


class MeetingNormalizer:
    """
    Converts raw calendar entries into canonical Meeting records.

    Normalization is total: a missing or malformed field degrades to an empty
    or absent value and never raises. Filtering is left to the agenda builder,
    so no event is dropped here.
    """

    @staticmethod
    def parse_timestamp(value: Any) -> Optional[datetime]:
        """
        Parse a source timestamp into an aware datetime.

        Accepts datetimes, ISO-8601 strings (a trailing 'Z' means UTC) and
        epoch seconds. Naive values are taken as local time, since the source
        already reports in the user's zone. Anything else yields None.
        """
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, (int, float)):
            try:
                return datetime.fromtimestamp(value, tz=timezone.utc).astimezone()
            except (OverflowError, OSError, ValueError):
                return None
        elif isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                return None
        else:
            return None

        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
        return parsed

    @staticmethod
    def parse_flag(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)

    @staticmethod
    def meeting_id(title: str, start: Optional[datetime], raw_start: Any = None) -> str:
        """
        Identity is title followed by start time. Two meetings sharing both
        are indistinguishable here; `normalize_all` disambiguates them.
        """
        if start is not None:
            return f"{title}{start.isoformat()}"
        return f"{title}{'' if raw_start is None else raw_start}"

    @classmethod
    def normalize(cls, raw: RawEvent) -> Meeting:
        """
        Build a Meeting from a single RawEvent.
        """
        title = "" if raw.title is None else str(raw.title)
        start = cls.parse_timestamp(raw.start)
        end = cls.parse_timestamp(raw.end)

        link = extract_video_link(build_search_text(raw.description, raw.location, raw.url))

        return Meeting(
            id=cls.meeting_id(title, start, raw.start),
            title=title,
            start=start,
            end=end,
            link=link,
            platform=classify_platform(link),
            is_all_day=cls.parse_flag(raw.is_all_day),
        )

    @classmethod
    def normalize_all(cls, raw_events: Iterable[RawEvent]) -> List[Meeting]:
        """
        Normalize every event, keeping source order.

        Colliding ids (same title and start) get a `#2`, `#3`... suffix in
        order of appearance so ids stay unique within one batch.
        """
        meetings: List[Meeting] = []
        seen: dict[str, int] = {}

        for raw in raw_events:
            meeting = cls.normalize(raw)
            count = seen.get(meeting.id, 0) + 1
            seen[meeting.id] = count
            if count > 1:
                meeting = meeting.model_copy(update={"id": f"{meeting.id}#{count}"})
            meetings.append(meeting)

        return meetings

    @staticmethod
    def coerce_raw_events(payload: Any) -> List[RawEvent]:
        """
        Turn a decoded JSON payload into RawEvents.

        Entries that are not objects are skipped; the payload itself must be a
        list (callers treat anything else as an acquisition failure).
        """
        if not isinstance(payload, list):
            raise ValueError("calendar payload must be a JSON array")
        return [RawEvent.model_validate(item) for item in payload if isinstance(item, dict)]
