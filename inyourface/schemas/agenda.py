# inyourface/schemas/agenda.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from inyourface.schemas.meeting import Meeting


class Agenda(BaseModel):
    """
    Today's remaining meetings, sorted ascending by start and split into the
    nearest one (`up_next`) and everything after it (`later`).

    Built only by the agenda builder; `later` is always derived from the same
    `up_next` it is published with.
    """

    model_config = ConfigDict(frozen=True)

    meetings: tuple[Meeting, ...] = ()
    up_next: Meeting | None = None
    later: tuple[Meeting, ...] = ()
    built_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not self.meetings

    def same_meetings(self, other: "Agenda | None") -> bool:
        """True if both agendas list the same meetings in the same order."""
        if other is None:
            return False
        return self.meetings == other.meetings


class AgendaView(BaseModel):
    """
    Agenda payload exposed to the presentation layer.
    """

    up_next: Meeting | None = Field(
        None,
        description="Nearest upcoming meeting, absent when the rest of the day is free.",
    )
    countdown: str | None = Field(
        None,
        description="Time until `up_next` starts, e.g. 'in 3m 12s' or 'in 1h 5m'.",
    )
    later: list[Meeting] = Field(
        default_factory=list,
        description="Remaining meetings after `up_next`, ascending by start.",
    )
    meetings: list[Meeting] = Field(
        default_factory=list,
        description="All remaining meetings for today, ascending by start.",
    )
    loading: bool = Field(False, description="True while a calendar refresh is in flight.")
    permission_error: bool = Field(
        False,
        description="True if the last calendar acquisition failed (e.g. access denied).",
    )
    last_refreshed_at: datetime | None = Field(
        None,
        description="Time of the last successful refresh.",
    )
