# inyourface/main.py
from typing import Optional

from fastapi import FastAPI

from inyourface.api.routes import agenda, alert, health
from inyourface.core.config import get_settings
from inyourface.core.logging import setup_logging
from inyourface.services.calendar_sources import build_calendar_source
from inyourface.services.engine import MeetingAlertEngine
from inyourface.services.host_bridge import build_host_bridge


def create_app(engine: Optional[MeetingAlertEngine] = None) -> FastAPI:
    """
    Application factory for the In Your Face Reminder service.

    Without an explicit `engine`, one is built from settings (calendar source
    and host bridge included).
    """
    settings = get_settings()
    setup_logging(settings.LOG_DIR, settings.LOG_LEVEL.upper())

    if engine is None:
        engine = MeetingAlertEngine(
            source=build_calendar_source(settings),
            bridge=build_host_bridge(settings),
            settings=settings,
        )

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Meeting alert engine: reads today's calendar, raises an unmissable\n"
            "full-screen alert seconds before each meeting starts and offers\n"
            "one-tap joining of its video call."
        ),
        version="0.1.0",
    )
    app.state.engine = engine

    app.include_router(health.router)
    app.include_router(agenda.router)
    app.include_router(alert.router)

    @app.on_event("startup")
    async def on_startup() -> None:  # pragma: no cover
        await app.state.engine.start()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:  # pragma: no cover
        await app.state.engine.stop()

    return app
