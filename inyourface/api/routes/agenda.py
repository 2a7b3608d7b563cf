# inyourface/api/routes/agenda.py
from http import HTTPStatus

from fastapi import APIRouter, Depends

from inyourface.api.dependencies.control_auth import verify_control_api_key
from inyourface.api.dependencies.engine import get_engine
from inyourface.schemas.agenda import AgendaView
from inyourface.services.engine import MeetingAlertEngine

router = APIRouter(prefix="/agenda", tags=["Agenda"])


@router.get(
    "",
    response_model=AgendaView,
    status_code=HTTPStatus.OK,
    summary="Today's remaining meetings",
    description=(
        "Returns the current agenda: the **up next** meeting with a countdown, "
        "the meetings **later** today, and the loading / permission-error flags.\n\n"
        "An empty `meetings` list means the rest of the day is free."
    ),
)
async def read_agenda(engine: MeetingAlertEngine = Depends(get_engine)) -> AgendaView:
    return engine.agenda_view()


@router.post(
    "/refresh",
    response_model=AgendaView,
    status_code=HTTPStatus.OK,
    summary="Re-read the calendar now",
    description=(
        "Triggers an out-of-band refresh and returns the agenda once it has "
        "completed. On failure the previous agenda is returned with "
        "`permission_error` set."
    ),
    dependencies=[Depends(verify_control_api_key)],
)
async def refresh_agenda(engine: MeetingAlertEngine = Depends(get_engine)) -> AgendaView:
    await engine.refresh("manual")
    return engine.agenda_view()
