"""HTTP fetch capability for published range lists.

Pure infra, no domain imports.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

_USER_AGENT_HEADER = "user-agent"


@dataclass(frozen=True)
class FetchResult:
    status_code: int
    body: str


class RangeFetcher(ABC):
    """``GET`` a URL and return its status and body.

    Implementations may raise on transport errors; callers treat any
    exception as a failed fetch.
    """

    @abstractmethod
    async def get(self, url: str) -> FetchResult: ...


class HttpxRangeFetcher(RangeFetcher):
    """Async HTTP GET with a bounded timeout."""

    def __init__(
        self,
        timeout: float,
        user_agent: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = {_USER_AGENT_HEADER: user_agent}
        self._transport = transport

    async def get(self, url: str) -> FetchResult:
        """Fetch *url*; non-2xx responses are returned, not raised."""
        async with httpx.AsyncClient(
            timeout=self._timeout, headers=self._headers, transport=self._transport
        ) as client:
            response = await client.get(url)
            return FetchResult(status_code=response.status_code, body=response.text)
