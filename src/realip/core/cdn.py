"""CdnRangeCache: Cloudflare's published ranges with a 24 h TTL.

Reads are served from the cache store while the entry is fresh.  An
expired or missing entry triggers a fetch of every published list; the
merged result replaces the entry as a whole.  When a fetch yields
nothing the previous entry is served even if it has expired
(stale-while-failing), or an empty list when there is none.  Nothing
in here raises to the caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator, Callable, Sequence
from datetime import timedelta
from typing import Annotated, Literal

from fastapi import Depends, FastAPI, Request
from pydantic import BaseModel
from redis.asyncio import Redis

from realip.configs.config import AppConfig, get_app_config
from realip.configs.system import ResolverSettings
from realip.infra.cache import CacheEntry, CacheStore, LocalCacheStore, RedisCacheStore
from realip.infra.http_utils import HttpxRangeFetcher, RangeFetcher
from realip.infra.lifespan import get_app
from realip.infra.redis import build_redis
from realip.infra.telemetry import (
    ATTR_CDN_RANGE_COUNT,
    ATTR_CDN_STALE_FALLBACK,
    ATTR_CDN_STATUS,
    ATTR_CDN_URL,
    SPAN_CDN_FETCH,
    SPAN_CDN_REFRESH,
    tracer,
)

from .cidr import parse_range
from .metrics import CDN_RANGES_CACHED, CDN_REFRESHES_TOTAL
from .trust import dedupe, parse_range_lines

logger = logging.getLogger(__name__)

CACHE_KEY = "realip:cdn:ranges"


class SyncResult(BaseModel):
    """Advisory outcome of an operator or scheduled sync."""

    status: Literal["updated", "failed", "disabled"]
    message: str
    range_count: int = 0


class CdnRangeCache:
    """Fetches and caches the CDN's published address ranges.

    Public API
    ----------
    ``get_ranges()``
        Hot path: fresh entry, else fetch, else stale entry, else ``[]``.

    ``refresh()``
        Forced fetch that ignores freshness.  Keeps the previous entry
        when the fetch fails.

    ``sync(settings)`` / ``on_settings_changed(old, new)``
        Gated refresh for operators, the daily cron, and the
        false→true toggle of ``include_cdn_ranges``.
    """

    def __init__(
        self,
        store: CacheStore,
        fetcher: RangeFetcher,
        urls: Sequence[str],
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._urls = list(urls)
        self._ttl_seconds = ttl.total_seconds()
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_ranges(self) -> list[str]:
        """Return the current range literals, fetching when expired."""
        entry = await self._load()
        if entry is not None and entry.is_fresh(self._clock(), self._ttl_seconds):
            return list(entry.ranges)
        return await self._refetch(entry)

    async def size(self) -> int:
        """Number of ranges in the stored entry (0 when absent)."""
        entry = await self._load()
        return len(entry.ranges) if entry is not None else 0

    # ------------------------------------------------------------------
    # Forced refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Fetch regardless of freshness.  ``True`` if new ranges were stored.

        The stored entry is not invalidated up front: when the fetch
        fails it is kept as is, so stale ranges stay available.
        """
        previous = await self._load()
        ranges = await self._fetch_all()
        if not ranges:
            return False
        return await self._save(ranges, previous)

    async def sync(self, settings: ResolverSettings) -> SyncResult:
        """Forced refresh, only when CDN ranges are enabled."""
        if not settings.include_cdn_ranges:
            return SyncResult(
                status="disabled",
                message="CDN ranges are disabled; nothing to sync.",
            )
        if await self.refresh():
            return SyncResult(
                status="updated",
                message="CDN ranges updated.",
                range_count=await self.size(),
            )
        return SyncResult(
            status="failed",
            message="Sync failed; kept the existing cache or empty list.",
            range_count=await self.size(),
        )

    async def on_settings_changed(
        self, old: ResolverSettings, new: ResolverSettings
    ) -> SyncResult | None:
        """Warm the cache when ``include_cdn_ranges`` is switched on."""
        if new.include_cdn_ranges and not old.include_cdn_ranges:
            logger.info("CDN ranges enabled -- warming the range cache")
            return await self.sync(new)
        return None

    async def clear(self) -> None:
        try:
            await self._store.delete(CACHE_KEY)
        except Exception:
            logger.warning("Failed to clear the CDN range cache", exc_info=True)

    async def aclose(self) -> None:
        await self._store.aclose()

    # -- internal ----------------------------------------------------

    async def _load(self) -> CacheEntry | None:
        try:
            return await self._store.get(CACHE_KEY)
        except Exception:
            logger.warning("CDN range cache read failed", exc_info=True)
            return None

    async def _save(self, ranges: list[str], previous: CacheEntry | None) -> bool:
        entry = CacheEntry(ranges=ranges, fetched_at=self._clock())
        try:
            await self._store.set(CACHE_KEY, entry)
        except Exception:
            logger.warning("CDN range cache write failed", exc_info=True)
            return False
        CDN_RANGES_CACHED.set(len(ranges))
        if previous is None or previous.ranges != ranges:
            logger.info("CDN range cache updated (%d ranges)", len(ranges))
        return True

    async def _refetch(self, previous: CacheEntry | None) -> list[str]:
        ranges = await self._fetch_all()
        if ranges:
            await self._save(ranges, previous)
            return ranges

        if previous is not None:
            logger.warning(
                "CDN range refresh failed -- serving %d stale ranges "
                "fetched at %.0f",
                len(previous.ranges),
                previous.fetched_at,
            )
            return list(previous.ranges)
        logger.warning("CDN range refresh failed and nothing is cached")
        return []

    async def _fetch_all(self) -> list[str]:
        """Fetch and merge every list; empty on total failure."""
        with tracer.start_as_current_span(SPAN_CDN_REFRESH) as span:
            collected: list[str] = []
            for url in self._urls:
                collected.extend(await self._fetch_one(url))
            ranges = dedupe(collected)

            span.set_attribute(ATTR_CDN_RANGE_COUNT, len(ranges))
            span.set_attribute(ATTR_CDN_STALE_FALLBACK, not ranges)
            CDN_REFRESHES_TOTAL.labels(result="ok" if ranges else "failed").inc()
            return ranges

    async def _fetch_one(self, url: str) -> list[str]:
        with tracer.start_as_current_span(SPAN_CDN_FETCH) as span:
            span.set_attribute(ATTR_CDN_URL, url)
            try:
                result = await self._fetcher.get(url)
            except Exception:
                logger.warning("Fetching %s failed", url, exc_info=True)
                return []

            span.set_attribute(ATTR_CDN_STATUS, result.status_code)
            if result.status_code != 200:
                logger.warning("Fetching %s returned HTTP %d", url, result.status_code)
                return []

            lines = parse_range_lines(result.body)
            if not lines:
                logger.warning("Fetching %s returned an empty body", url)
                return []

            valid = [line for line in lines if parse_range(line) is not None]
            if len(valid) != len(lines):
                logger.warning(
                    "Dropped %d malformed ranges from %s",
                    len(lines) - len(valid),
                    url,
                )
            return valid


# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_range_cache(
    app: Annotated[FastAPI, Depends(get_app)],
    redis_client: Annotated[Redis | None, Depends(build_redis)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Create a ``CdnRangeCache``, attach to ``app.state``; close on shutdown."""
    cf = config.cloudflare

    if redis_client is not None:
        store: CacheStore = RedisCacheStore(redis_client)
        logger.info("Range cache: Redis backend (key=%s)", CACHE_KEY)
    else:
        store = LocalCacheStore()
        logger.info("Range cache: local backend")

    cache = CdnRangeCache(
        store=store,
        fetcher=HttpxRangeFetcher(
            timeout=cf.timeout.total_seconds(),
            user_agent=cf.user_agent,
        ),
        urls=cf.urls,
        ttl=cf.cache_ttl,
    )
    app.state.range_cache = cache
    yield
    await cache.aclose()


# ---------------------------------------------------------------------------
# Per-request dependency — reads from app.state
# ---------------------------------------------------------------------------


def get_range_cache(request: Request) -> CdnRangeCache:
    """Return the ``CdnRangeCache`` stored on ``app.state`` by the lifespan."""
    return request.app.state.range_cache
