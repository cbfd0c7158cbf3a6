"""Background refresh of the CDN range cache.

Two loops run while the app is up:

1. **Daily refresh** — first tick after a random delay (5–30 min by
   default, so many installations do not hit the upstream at the same
   moment), then every ``scheduler.interval``.  Each tick re-reads the
   settings and calls ``CdnRangeCache.sync``, which is a no-op while
   ``include_cdn_ranges`` is off.
2. **Settings watch** — polls the (hot-reloadable) settings and warms
   the cache when ``include_cdn_ranges`` flips from false to true.

``build_cron`` is a lifespan dependency: the loops start on startup
(activation) and are cancelled on shutdown (deactivation).
"""

import asyncio
import logging
import random
from collections.abc import AsyncGenerator, Callable
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, FastAPI

from realip.configs.config import AppConfig, get_app_config
from realip.configs.system import ResolverSettings
from realip.infra.lifespan import get_app

from .cdn import CdnRangeCache, build_range_cache

logger = logging.getLogger(__name__)


def _current_settings() -> ResolverSettings:
    return get_app_config().resolver


class CdnRefreshCron:
    """Manages the refresh and settings-watch loop lifecycle."""

    def __init__(
        self,
        cache: CdnRangeCache,
        interval: timedelta,
        initial_delay: tuple[timedelta, timedelta],
        poll_interval: timedelta,
        settings_provider: Callable[[], ResolverSettings] | None = None,
    ) -> None:
        self._cache = cache
        self._interval = interval.total_seconds()
        self._delay_bounds = (
            initial_delay[0].total_seconds(),
            initial_delay[1].total_seconds(),
        )
        self._poll_interval = poll_interval.total_seconds()
        self._settings_provider = settings_provider or _current_settings
        self._last_settings: ResolverSettings | None = None
        self._tasks: list[asyncio.Task[None]] = []

    def initial_delay(self) -> float:
        low, high = self._delay_bounds
        return random.uniform(low, max(low, high))

    async def start(self) -> None:
        self._last_settings = self._read_settings()
        delay = self.initial_delay()
        self._tasks = [
            asyncio.create_task(self._refresh_loop(delay), name="cdn-refresh"),
            asyncio.create_task(self._watch_loop(), name="cdn-settings-watch"),
        ]
        logger.info(
            "CDN refresh cron started (first run in %.0fs, interval=%.0fs)",
            delay,
            self._interval,
        )

    async def stop(self) -> None:
        if not self._tasks:
            return
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("CDN refresh cron stopped.")

    async def tick(self) -> None:
        """One scheduled refresh."""
        result = await self._cache.sync(self._read_settings())
        if result.status == "failed":
            logger.warning("Scheduled CDN sync: %s", result.message)
        else:
            logger.info(
                "Scheduled CDN sync: %s (%d ranges)",
                result.status,
                result.range_count,
            )

    async def check_settings(self) -> None:
        """Warm the cache if ``include_cdn_ranges`` was just switched on."""
        current = self._read_settings()
        previous = self._last_settings
        self._last_settings = current
        if previous is not None:
            await self._cache.on_settings_changed(previous, current)

    # -- internal ----------------------------------------------------

    def _read_settings(self) -> ResolverSettings:
        try:
            return self._settings_provider()
        except Exception:
            logger.exception("Reading settings failed; keeping last snapshot")
            return self._last_settings or ResolverSettings()

    async def _refresh_loop(self, delay: float) -> None:
        await asyncio.sleep(delay)
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("CDN refresh tick failed")
            await asyncio.sleep(self._interval)

    async def _watch_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                await self.check_settings()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("CDN settings watch failed")


# ------------------------------------------------------------------
# Lifespan dependency
# ------------------------------------------------------------------


async def build_cron(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
    _cache: Annotated[None, Depends(build_range_cache)],
) -> AsyncGenerator[None, None]:
    """Create, start, and expose the refresh cron on ``app.state``."""
    sc = config.scheduler
    if not sc.enabled:
        logger.info("CDN refresh cron disabled.")
        yield
        return

    cron = CdnRefreshCron(
        cache=app.state.range_cache,
        interval=sc.interval,
        initial_delay=(sc.initial_delay_min, sc.initial_delay_max),
        poll_interval=sc.settings_poll_interval,
    )
    app.state.refresh_cron = cron
    await cron.start()
    yield
    await cron.stop()
