"""Tests for the CDN refresh cron."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from realip.configs.system import ResolverSettings
from realip.core.cdn import SyncResult
from realip.core.cron import CdnRefreshCron


class _RecordingCache:
    def __init__(self) -> None:
        self.synced: list[ResolverSettings] = []
        self.transitions: list[tuple[bool, bool]] = []

    async def sync(self, settings: ResolverSettings) -> SyncResult:
        self.synced.append(settings)
        if not settings.include_cdn_ranges:
            return SyncResult(status="disabled", message="off")
        return SyncResult(status="updated", message="ok", range_count=3)

    async def on_settings_changed(self, old, new):
        self.transitions.append((old.include_cdn_ranges, new.include_cdn_ranges))
        return None


class _Settings:
    """Mutable settings source standing in for the hot-reloaded config."""

    def __init__(self, include: bool) -> None:
        self.include = include

    def __call__(self) -> ResolverSettings:
        return ResolverSettings(include_cdn_ranges=self.include)


def _cron(cache, provider, delay=(timedelta(minutes=5), timedelta(minutes=30))):
    return CdnRefreshCron(
        cache=cache,  # type: ignore[arg-type]
        interval=timedelta(days=1),
        initial_delay=delay,
        poll_interval=timedelta(seconds=60),
        settings_provider=provider,
    )


class TestSchedule:
    def test_initial_delay_within_bounds(self):
        cron = _cron(_RecordingCache(), _Settings(True))
        for _ in range(50):
            assert 300 <= cron.initial_delay() <= 1800

    def test_inverted_bounds_collapse_to_minimum(self):
        cron = _cron(
            _RecordingCache(),
            _Settings(True),
            delay=(timedelta(seconds=10), timedelta(seconds=5)),
        )
        assert cron.initial_delay() == 10

    @pytest.mark.asyncio
    async def test_tick_syncs_with_current_settings(self):
        cache = _RecordingCache()
        source = _Settings(False)
        cron = _cron(cache, source)
        await cron.tick()
        source.include = True
        await cron.tick()
        assert [s.include_cdn_ranges for s in cache.synced] == [False, True]


class TestSettingsWatch:
    @pytest.mark.asyncio
    async def test_reports_transition(self):
        cache = _RecordingCache()
        source = _Settings(False)
        cron = _cron(cache, source)
        cron._last_settings = source()

        source.include = True
        await cron.check_settings()
        await cron.check_settings()
        assert cache.transitions == [(False, True), (True, True)]

    @pytest.mark.asyncio
    async def test_first_check_only_records_snapshot(self):
        cache = _RecordingCache()
        cron = _cron(cache, _Settings(True))
        await cron.check_settings()
        assert cache.transitions == []

    @pytest.mark.asyncio
    async def test_broken_provider_keeps_last_snapshot(self):
        cache = _RecordingCache()
        source = _Settings(False)
        cron = _cron(cache, source)
        cron._last_settings = source()

        def broken() -> ResolverSettings:
            raise RuntimeError("config unreadable")

        cron._settings_provider = broken
        await cron.check_settings()
        assert cache.transitions == [(False, False)]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        cache = _RecordingCache()
        cron = _cron(cache, _Settings(True))
        await cron.start()
        assert len(cron._tasks) == 2
        tasks = list(cron._tasks)

        await cron.stop()
        assert cron._tasks == []
        assert all(t.cancelled() or t.done() for t in tasks)
        # Initial delay is minutes away: nothing ran yet.
        assert cache.synced == []

    @pytest.mark.asyncio
    async def test_first_tick_after_delay(self):
        cache = _RecordingCache()
        cron = _cron(
            cache, _Settings(True), delay=(timedelta(0), timedelta(0))
        )
        await cron.start()
        for _ in range(10):
            await asyncio.sleep(0)
            if cache.synced:
                break
        await cron.stop()
        assert len(cache.synced) == 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        cron = _cron(_RecordingCache(), _Settings(True))
        await cron.stop()
