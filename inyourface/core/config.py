# inyourface/core/config.py
from functools import lru_cache

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local `.env` file)
    at runtime and cover:
    - Alert timing (threshold, tick/refresh periods, expiry)
    - Which calendar source feeds the agenda
    - How the desktop host is signalled
    - Control API key and logging
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "In Your Face Reminder"
    APP_ENV: str = Field("local", description="Environment name: local/test/dev/prod")

    # --- Alert timing ---
    ALERT_THRESHOLD_MS: int = Field(
        5000,
        description="Window before a meeting's start during which an alert may fire.",
    )
    TICK_INTERVAL_SECONDS: float = Field(1.0, description="Alert clock period.")
    REFRESH_INTERVAL_SECONDS: float = Field(
        300.0,
        description="Period of the scheduled agenda refresh.",
    )
    ALERT_EXPIRY_SECONDS: float = Field(
        600.0,
        description="An active alert nobody dismisses is closed after this long.",
    )
    FETCH_TIMEOUT_SECONDS: float = Field(
        15.0,
        description="Upper bound on a single calendar acquisition.",
    )
    LOOKAHEAD_HOURS: int = Field(
        24,
        description="Window requested from remote calendar sources.",
    )

    # --- Calendar source ---
    CALENDAR_SOURCE: str = Field(
        "command",
        description="One of: command, graph, file.",
    )
    CALENDAR_COMMAND: str | None = Field(
        default=None,
        description="Helper command printing a JSON array of calendar events on stdout.",
    )
    CALENDAR_FILE: str | None = Field(
        default=None,
        description="Path to a JSON array of calendar events.",
    )

    GRAPH_TENANT_ID: str | None = None
    GRAPH_CLIENT_ID: str | None = None
    GRAPH_CLIENT_SECRET: str | None = None
    GRAPH_BASE_URL: AnyHttpUrl | None = None
    GRAPH_USER_ID: str | None = Field(
        default=None,
        description="User ID/email whose calendar is read through Microsoft Graph.",
    )

    # --- Host bridge ---
    HOST_BRIDGE_URL: AnyHttpUrl | None = Field(
        default=None,
        description=(
            "Base URL of the desktop shell that switches window modes and opens "
            "links. When unset, a local bridge (logging + webbrowser) is used."
        ),
    )

    CONTROL_API_KEY: str | None = Field(
        default=None,
        description="API key required for mutating /agenda and /alert endpoints.",
    )

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Settings are read and validated once, while still being easily
    importable across the app.
    """
    return Settings()
