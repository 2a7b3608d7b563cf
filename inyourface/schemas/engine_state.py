# inyourface/schemas/engine_state.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from inyourface.schemas.agenda import Agenda
from inyourface.schemas.alert import AlertSession


class EngineState(BaseModel):
    """
    Everything the alert engine owns, replaced wholesale on every transition.

    Timer handlers take the current state and return the next one; nothing
    else mutates it.
    """

    model_config = ConfigDict(frozen=True)

    agenda: Agenda = Field(default_factory=Agenda)
    alert: AlertSession | None = None
    loading: bool = False
    permission_error: bool = False
    last_refreshed_at: datetime | None = None
    alerted_ids: frozenset[str] = Field(
        default_factory=frozenset,
        description="Meetings that already fired an alert inside their window.",
    )
