# inyourface/schemas/alert.py
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from inyourface.schemas.meeting import Meeting


class AlertState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class AlertTrigger(str, Enum):
    """What moved the session into the active state."""

    CLOCK = "clock"
    MANUAL = "manual"


class AlertSession(BaseModel):
    """
    The single live full-screen alert. Its absence means the idle state.
    """

    model_config = ConfigDict(frozen=True)

    meeting: Meeting
    activated_at: datetime
    expires_at: datetime
    trigger: AlertTrigger = AlertTrigger.CLOCK

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class AlertView(BaseModel):
    """
    Alert payload exposed to the presentation layer.
    """

    state: AlertState = Field(..., description="idle or active.")
    meeting: Meeting | None = Field(None, description="Meeting the alert was raised for.")
    trigger: AlertTrigger | None = None
    activated_at: datetime | None = None
    expires_at: datetime | None = None
    seconds_until_start: float | None = Field(
        None,
        description="Seconds until the meeting starts; negative once it has started.",
    )


class JoinResult(BaseModel):
    """
    Response of the join action. Opening the link is best-effort; the
    presentation layer is expected to fall back on its own if it fails.
    """

    link: str | None = Field(None, description="Link handed to the host, if any.")
    dismissed: bool = Field(..., description="True if an active alert was closed.")
