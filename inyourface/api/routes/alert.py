# inyourface/api/routes/alert.py
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException

from inyourface.api.dependencies.control_auth import verify_control_api_key
from inyourface.api.dependencies.engine import get_engine
from inyourface.schemas.alert import AlertView, JoinResult
from inyourface.services.engine import MeetingAlertEngine

router = APIRouter(prefix="/alert", tags=["Alert"])


@router.get(
    "",
    response_model=AlertView,
    summary="Current alert state",
    description="`idle`, or `active` with the meeting and the time left until it starts.",
)
async def read_alert(engine: MeetingAlertEngine = Depends(get_engine)) -> AlertView:
    return engine.alert_view()


@router.post(
    "/check-now",
    response_model=AlertView,
    summary="Raise the alert for the up-next meeting",
    description=(
        "Manually enters the full-screen alert for the up-next meeting. If an "
        "alert is already active it is left untouched and returned as-is."
    ),
    responses={409: {"description": "There is no upcoming meeting today."}},
    dependencies=[Depends(verify_control_api_key)],
)
async def check_alert_now(engine: MeetingAlertEngine = Depends(get_engine)) -> AlertView:
    if engine.state.agenda.up_next is None:
        raise HTTPException(
            status_code=HTTPStatus.CONFLICT,
            detail="No upcoming meeting to alert for.",
        )
    engine.check_alert_now()
    return engine.alert_view()


@router.post(
    "/dismiss",
    response_model=AlertView,
    summary="Dismiss the active alert",
    description="Returns to the normal window and refreshes the agenda immediately.",
    dependencies=[Depends(verify_control_api_key)],
)
async def dismiss_alert(engine: MeetingAlertEngine = Depends(get_engine)) -> AlertView:
    engine.dismiss()
    return engine.alert_view()


@router.post(
    "/join",
    response_model=JoinResult,
    summary="Join the call",
    description=(
        "Dismisses the active alert and asks the host to open the call link. "
        "Opening is best-effort; the caller should fall back to its own "
        "mechanism using the returned `link`."
    ),
    dependencies=[Depends(verify_control_api_key)],
)
async def join_call(engine: MeetingAlertEngine = Depends(get_engine)) -> JoinResult:
    return engine.join()
