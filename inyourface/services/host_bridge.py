# inyourface/services/host_bridge.py
from __future__ import annotations

import logging
import webbrowser
from typing import Protocol

import httpx

from inyourface.core.config import Settings
from inyourface.core.errors import HostSignalFault

logger = logging.getLogger(__name__)


class HostBridge(Protocol):
    """
    Capabilities provided by the desktop host. All calls are best-effort;
    implementations raise HostSignalFault when a request cannot be delivered.
    """

    async def enter_alert_presentation(self) -> None:
        ...

    async def exit_alert_presentation(self) -> None:
        ...

    async def open_external(self, url: str) -> None:
        ...


class LocalHostBridge:
    """
    Bridge used when no desktop shell is attached: window-mode changes are
    only logged and links open in the default browser.
    """

    async def enter_alert_presentation(self) -> None:
        logger.info("Host presentation -> full-screen alert")

    async def exit_alert_presentation(self) -> None:
        logger.info("Host presentation -> normal window")

    async def open_external(self, url: str) -> None:
        if not webbrowser.open(url):
            raise HostSignalFault(f"No browser available to open {url}")


class HttpHostBridge:
    """
    Signals a desktop shell listening on HOST_BRIDGE_URL.

    Endpoints
    ---------
    - POST /enter-alert-mode
    - POST /exit-alert-mode
    - POST /open-link   {"url": "..."}
    """

    def __init__(self, base_url: str, timeout_seconds: float = 2.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    async def _post(self, path: str, json: dict | None = None) -> None:
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                resp = await client.post(url, json=json)
        except httpx.HTTPError as exc:
            raise HostSignalFault(f"Host bridge request to {url} failed: {exc}") from exc

        if resp.status_code // 100 != 2:
            raise HostSignalFault(
                f"Host bridge request to {url} failed (status={resp.status_code}): {resp.text}"
            )

    async def enter_alert_presentation(self) -> None:
        await self._post("/enter-alert-mode")

    async def exit_alert_presentation(self) -> None:
        await self._post("/exit-alert-mode")

    async def open_external(self, url: str) -> None:
        await self._post("/open-link", json={"url": url})


def build_host_bridge(settings: Settings) -> HostBridge:
    if settings.HOST_BRIDGE_URL:
        return HttpHostBridge(str(settings.HOST_BRIDGE_URL))
    return LocalHostBridge()
