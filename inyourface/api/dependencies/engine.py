# inyourface/api/dependencies/engine.py
from fastapi import Request

from inyourface.services.engine import MeetingAlertEngine


def get_engine(request: Request) -> MeetingAlertEngine:
    """
    FastAPI dependency returning the process-wide alert engine attached to
    the application by `create_app`.
    """
    return request.app.state.engine
