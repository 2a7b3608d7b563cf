# inyourface/schemas/meeting.py
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MeetingPlatform(str, Enum):
    """
    Closed set of video-call providers a meeting can be classified into.

    Values double as the human-readable labels shown by the presentation layer.
    """

    ZOOM = "Zoom"
    GOOGLE_MEET = "Google Meet"
    MICROSOFT_TEAMS = "Microsoft Teams"
    WEBEX = "Webex"
    VIDEO_CALL = "Video Call"
    IN_PERSON_OR_OTHER = "In Person / Other"


class RawEvent(BaseModel):
    """
    A calendar entry exactly as delivered by the calendar source.

    Nothing here is trusted: every field is optional and loosely typed so that
    a single malformed entry never rejects a whole payload.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Any = None
    description: Any = None
    location: Any = None
    url: Any = None
    start: Any = None
    end: Any = None
    is_all_day: Any = Field(default=False, alias="isAllDay")


class Meeting(BaseModel):
    """
    Canonical, immutable meeting record produced by the normalizer.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identity derived from title and start time.")
    title: str = Field("", description="Meeting title, may be empty.")
    start: datetime | None = Field(
        None,
        description="Timezone-aware start time, absent if the source value was unreadable.",
    )
    end: datetime | None = Field(
        None,
        description="Timezone-aware end time, absent if the source value was unreadable.",
    )
    link: str | None = Field(None, description="Video-call URL, if one was found.")
    platform: MeetingPlatform = Field(
        MeetingPlatform.IN_PERSON_OR_OTHER,
        description="Provider classified from the link.",
    )
    is_all_day: bool = Field(False, description="Only used to filter the agenda.")
