"""API client for the realip service."""

import logging
from typing import Any

import httpx

from .config import CLIConfig

logger = logging.getLogger(__name__)


class RealIPAPIError(Exception):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code


class RealIPAPIClient:
    """Client for the realip HTTP endpoints."""

    def __init__(self, config: CLIConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.client = httpx.AsyncClient(timeout=config.timeout, transport=transport)

    def _admin_headers(self) -> dict[str, str]:
        if not self.config.admin_token:
            return {}
        return {"Authorization": f"Bearer {self.config.admin_token}"}

    async def _request(
        self, method: str, path: str, *, admin: bool = False
    ) -> dict[str, Any]:
        url = self.config.url(path)
        headers = self._admin_headers() if admin else {}
        logger.debug("%s %s", method, url)

        response = await self.client.request(method, url, headers=headers)
        logger.debug("Response status: %s", response.status_code)
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise RealIPAPIError(response.status_code, str(detail))
        return response.json()

    async def whoami(self) -> str:
        """The caller's address as resolved by the server."""
        data = await self._request("GET", "/ip")
        return data["ip"]

    async def debug(self) -> dict[str, Any]:
        return await self._request("GET", "/debug", admin=True)

    async def sync(self) -> dict[str, Any]:
        """Trigger a manual CDN range sync."""
        return await self._request("POST", "/cdn/sync", admin=True)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
