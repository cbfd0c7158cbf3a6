"""Per-request resolution context.

One ``ResolutionContext`` is created for each incoming request.  It
holds the settings snapshot, builds the trust set at most once, and
memoizes the resolved address, so repeated lookups within a request
never recompute and nothing leaks across requests.

Usable as FastAPI dependencies::

    ctx: ResolutionContext = Depends(get_resolution_context)
    real_ip: str = Depends(get_real_ip)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Annotated

from fastapi import Depends, Request
from pydantic import BaseModel

from realip.configs.config import get_resolver_settings
from realip.configs.system import ResolverSettings

from .cdn import CdnRangeCache, get_range_cache
from .cidr import matches
from .hooks import ResolverHooks, get_resolver_hooks
from .metrics import RESOLUTIONS_TOTAL
from .resolver import Resolution, resolve_detailed
from .trust import TrustSet, trusted_ranges

logger = logging.getLogger(__name__)

STATE_KEY = "resolution_context"


class DebugInfo(BaseModel):
    """Read-only diagnostic view for privileged callers."""

    remote_addr: str
    from_trusted_proxy: bool
    resolved_real_ip: str
    require_trusted_proxy: bool
    cdn_cache_size: int


class ResolutionContext:
    """Memoizes the trust set and the resolved address for one request."""

    def __init__(
        self,
        peer_address: str,
        headers: Mapping[str, str],
        settings: ResolverSettings,
        range_cache: CdnRangeCache | None = None,
        hooks: ResolverHooks | None = None,
    ) -> None:
        self.peer_address = peer_address
        self.headers = headers
        self.settings = settings
        self._range_cache = range_cache
        self._hooks = hooks or ResolverHooks()

        self._cdn_ranges: list[str] | None = None
        self._trust_set: TrustSet | None = None
        self._resolution: Resolution | None = None
        self._lock = asyncio.Lock()

    async def cdn_ranges(self) -> list[str]:
        """CDN ranges when enabled, fetched at most once per request."""
        if self._cdn_ranges is None:
            if self.settings.include_cdn_ranges and self._range_cache is not None:
                self._cdn_ranges = await self._range_cache.get_ranges()
            else:
                self._cdn_ranges = []
        return self._cdn_ranges

    async def trusted_ranges(self) -> TrustSet:
        if self._trust_set is None:
            self._trust_set = trusted_ranges(
                self.settings,
                await self.cdn_ranges(),
                self._hooks.trust_filter,
            )
        return self._trust_set

    async def resolution(self) -> Resolution:
        async with self._lock:
            if self._resolution is None:
                self._resolution = resolve_detailed(
                    self.peer_address,
                    self.headers,
                    self.settings,
                    await self.trusted_ranges(),
                    await self.cdn_ranges(),
                    self._hooks.header_filter,
                )
                RESOLUTIONS_TOTAL.labels(source=self._resolution.source).inc()
                logger.debug(
                    "Resolved %s -> %s (%s)",
                    self.peer_address,
                    self._resolution.address,
                    self._resolution.source,
                )
            return self._resolution

    async def real_ip(self) -> str:
        """The resolved client address (memoized)."""
        return (await self.resolution()).address

    async def from_trusted_proxy(self) -> bool:
        return matches(self.peer_address, await self.trusted_ranges())

    async def debug_info(self) -> DebugInfo:
        cache_size = await self._range_cache.size() if self._range_cache else 0
        return DebugInfo(
            remote_addr=self.peer_address,
            from_trusted_proxy=await self.from_trusted_proxy(),
            resolved_real_ip=await self.real_ip(),
            require_trusted_proxy=self.settings.require_trusted_proxy,
            cdn_cache_size=cache_size,
        )


# ---------------------------------------------------------------------------
# Per-request dependencies
# ---------------------------------------------------------------------------


def _peer_address(request: Request) -> str:
    return request.client.host if request.client else ""


def get_resolution_context(
    request: Request,
    settings: Annotated[ResolverSettings, Depends(get_resolver_settings)],
    range_cache: Annotated[CdnRangeCache, Depends(get_range_cache)],
    hooks: Annotated[ResolverHooks, Depends(get_resolver_hooks)],
) -> ResolutionContext:
    """Return this request's context, reusing one set up by the middleware."""
    existing = getattr(request.state, STATE_KEY, None)
    if isinstance(existing, ResolutionContext):
        return existing

    ctx = ResolutionContext(
        peer_address=_peer_address(request),
        headers=request.headers,
        settings=settings,
        range_cache=range_cache,
        hooks=hooks,
    )
    setattr(request.state, STATE_KEY, ctx)
    return ctx


async def get_real_ip(
    ctx: Annotated[ResolutionContext, Depends(get_resolution_context)],
) -> str:
    """Extract the real client IP from the request."""
    return await ctx.real_ip()
