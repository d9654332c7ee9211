"""Shared plumbing for the Google REST API clients."""

import logging
from pathlib import Path
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"


class TokenSource(Protocol):
    """Anything that can hand out a bearer token (a Session, usually)."""

    async def get_access_token(self, force_refresh: bool = False) -> str: ...


class GoogleApiClient:
    """Base class for authenticated Google REST clients.

    Requests carry the session's bearer token. When Google rejects a
    token with 401 the session is refreshed and the request retried once.

    Attributes:
        session: Token source used to authorize requests.
    """

    def __init__(self, session: TokenSource, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the client.

        Args:
            session: Session (or other token source) for the active profile.
            http_client: Custom httpx client. Creates one if not provided.
        """
        self.session = session
        self._http_client = http_client
        self._owns_http_client = http_client is None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                follow_redirects=True,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "GoogleApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _auth_headers(self, force_refresh: bool = False) -> dict[str, str]:
        token = await self.session.get_access_token(force_refresh=force_refresh)
        return {"Authorization": f"Bearer {token}"}

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send an authenticated request, retrying once after a 401.

        Raises:
            httpx.HTTPStatusError: If the request fails.
        """
        client = self._get_http_client()

        for attempt in range(2):
            headers = await self._auth_headers(force_refresh=attempt > 0)
            headers["Accept"] = "application/json"
            response = await client.request(
                method=method, url=url, params=params, json=json_data, headers=headers
            )
            if response.status_code != 401 or attempt > 0:
                break
            logger.info("Access token rejected, refreshing and retrying")

        response.raise_for_status()
        return response

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request and return the JSON body.

        Empty bodies (204 No Content on delete) come back as {}.
        """
        response = await self._send(method, url, params=params, json_data=json_data)
        if not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def _download(self, url: str, output_path: Path, params: dict[str, Any]) -> int:
        """Stream a response body to a file.

        Returns:
            Number of bytes written.
        """
        client = self._get_http_client()

        for attempt in range(2):
            headers = await self._auth_headers(force_refresh=attempt > 0)
            async with client.stream("GET", url, params=params, headers=headers) as response:
                if response.status_code == 401 and attempt == 0:
                    logger.info("Access token rejected, refreshing and retrying")
                    continue
                response.raise_for_status()

                written = 0
                with open(output_path, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
                        written += len(chunk)
                return written

        raise RuntimeError("Download retry loop exhausted")
