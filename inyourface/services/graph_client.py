# inyourface/services/graph_client.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx


class GraphClientError(RuntimeError):
    """
    Raised when the GraphClient cannot obtain an access token or when a
    Graph API call fails.
    """


@dataclass
class _TokenState:
    access_token: str
    expires_at: datetime


class GraphClient:
    """
    Minimal Microsoft Graph API client using client-credentials flow.

    Responsibilities
    ----------------
    - Fetch and cache an access token (in memory, per process).
    - Issue authenticated GET requests and return the JSON payload.

    Tokens are refreshed 60 seconds before their real expiry.
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        base_url: str = "https://graph.microsoft.com",
        scope: str = "https://graph.microsoft.com/.default",
        timeout_seconds: float = 10.0,
    ) -> None:
        if not tenant_id or not client_id or not client_secret:
            raise ValueError("tenant_id, client_id and client_secret are required")

        self._tenant_id = tenant_id
        self._client_id = client_id
        self._client_secret = client_secret
        self._base_url = base_url.rstrip("/")
        self._scope = scope
        self._timeout_seconds = timeout_seconds

        self._token_state: Optional[_TokenState] = None

    @property
    def token_url(self) -> str:
        return f"https://login.microsoftonline.com/{self._tenant_id}/oauth2/v2.0/token"

    async def _fetch_token(self) -> _TokenState:
        data = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "grant_type": "client_credentials",
            "scope": self._scope,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                resp = await client.post(self.token_url, data=data)
        except httpx.HTTPError as exc:
            raise GraphClientError(f"Token request failed: {exc}") from exc

        if resp.status_code != 200:
            raise GraphClientError(
                f"Failed to obtain Graph token (status={resp.status_code}): {resp.text}"
            )

        payload = resp.json()
        access_token = payload.get("access_token")
        expires_in = payload.get("expires_in")

        if not access_token or not isinstance(expires_in, (int, float)):
            raise GraphClientError(
                "Invalid token response from Azure AD (missing access_token/expires_in)"
            )

        now = datetime.now(tz=timezone.utc)
        safety_margin = 60  # seconds
        expires_at = now + timedelta(seconds=float(expires_in) - safety_margin)

        return _TokenState(access_token=access_token, expires_at=expires_at)

    async def get_access_token(self) -> str:
        """
        Return a valid access token, using the cached value while it is fresh.
        """
        now = datetime.now(tz=timezone.utc)
        if self._token_state and self._token_state.expires_at > now:
            return self._token_state.access_token

        self._token_state = await self._fetch_token()
        return self._token_state.access_token

    def _build_url(self, path: str) -> str:
        # Absolute URLs (e.g. @odata.nextLink) are used as-is.
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def get_json(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Issue a GET request to a Graph endpoint and return the JSON payload.

        Raises GraphClientError on transport errors and non-2xx responses.
        """
        token = await self.get_access_token()

        request_headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        if headers:
            request_headers.update(headers)

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                resp = await client.request(
                    method="GET",
                    url=self._build_url(path),
                    headers=request_headers,
                    params=params,
                )
        except httpx.HTTPError as exc:
            raise GraphClientError(f"Graph GET failed: {exc}") from exc

        if resp.status_code // 100 != 2:
            raise GraphClientError(
                f"Graph GET failed (status={resp.status_code}): {resp.text}"
            )
        return resp.json()
