# inyourface/api/dependencies/control_auth.py
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from inyourface.core.config import get_settings

control_key_header = APIKeyHeader(
    name="X-Control-Api-Key",
    auto_error=False,
    description="Key for the endpoints that change agenda or alert state.",
)

# Environments where the desktop shell may talk to the engine unauthenticated.
_OPEN_ENVIRONMENTS = ("local", "test")


async def verify_control_api_key(
    provided_key: Optional[str] = Security(control_key_header),
) -> None:
    """
    Guards refresh, check-now, dismiss and join.

    A configured CONTROL_API_KEY is always enforced. Without one, the guard
    is open on a developer machine and refuses to run anywhere else.
    """
    settings = get_settings()
    expected = settings.CONTROL_API_KEY

    if not expected:
        if (settings.APP_ENV or "local").lower() in _OPEN_ENVIRONMENTS:
            return
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="CONTROL_API_KEY not configured for this environment.",
        )

    if provided_key != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing control API key.",
        )
