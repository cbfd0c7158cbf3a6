"""Tests for per-request memoization in ResolutionContext."""

from __future__ import annotations

import asyncio

import pytest

from realip.configs.system import ResolverSettings
from realip.core.context import DebugInfo, ResolutionContext
from realip.core.hooks import ResolverHooks


class _StubRangeCache:
    """Counts ``get_ranges`` calls; serves a fixed list."""

    def __init__(self, ranges: list[str]) -> None:
        self.ranges = ranges
        self.calls = 0

    async def get_ranges(self) -> list[str]:
        self.calls += 1
        await asyncio.sleep(0)
        return list(self.ranges)

    async def size(self) -> int:
        return len(self.ranges)


def _context(peer="10.0.0.2", headers=None, cache=None, hooks=None, **settings):
    values = {"custom_trusted_ranges": "10.0.0.0/24"}
    values.update(settings)
    return ResolutionContext(
        peer_address=peer,
        headers=headers or {},
        settings=ResolverSettings(**values),
        range_cache=cache,
        hooks=hooks,
    )


class TestMemoization:
    @pytest.mark.asyncio
    async def test_cdn_ranges_fetched_once(self):
        cache = _StubRangeCache(["173.245.48.0/20"])
        ctx = _context(
            peer="173.245.48.1",
            headers={"CF-Connecting-IP": "198.51.100.7"},
            cache=cache,
            include_cdn_ranges=True,
        )
        assert await ctx.real_ip() == "198.51.100.7"
        assert await ctx.real_ip() == "198.51.100.7"
        await ctx.debug_info()
        assert cache.calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_one_resolution(self):
        cache = _StubRangeCache(["173.245.48.0/20"])
        ctx = _context(cache=cache, include_cdn_ranges=True)
        results = await asyncio.gather(*(ctx.resolution() for _ in range(5)))
        assert all(r is results[0] for r in results)
        assert cache.calls == 1

    @pytest.mark.asyncio
    async def test_cdn_not_fetched_when_disabled(self):
        cache = _StubRangeCache(["173.245.48.0/20"])
        ctx = _context(cache=cache, include_cdn_ranges=False)
        assert await ctx.cdn_ranges() == []
        await ctx.real_ip()
        assert cache.calls == 0

    @pytest.mark.asyncio
    async def test_trust_filter_runs_once(self):
        calls = []

        def trust_filter(values: list[str]) -> list[str]:
            calls.append(list(values))
            return values

        ctx = _context(hooks=ResolverHooks(trust_filter=trust_filter))
        await ctx.real_ip()
        await ctx.from_trusted_proxy()
        await ctx.trusted_ranges()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_contexts_are_independent(self):
        first = _context(headers={"X-Real-IP": "198.51.100.1"})
        second = _context(headers={"X-Real-IP": "198.51.100.2"})
        assert await first.real_ip() == "198.51.100.1"
        assert await second.real_ip() == "198.51.100.2"


class TestDebugInfo:
    @pytest.mark.asyncio
    async def test_trusted_proxy(self):
        cache = _StubRangeCache(["173.245.48.0/20", "2400:cb00::/32"])
        ctx = _context(
            headers={"X-Forwarded-For": "10.0.0.9, 198.51.100.9"}, cache=cache
        )
        info = await ctx.debug_info()
        assert info == DebugInfo(
            remote_addr="10.0.0.2",
            from_trusted_proxy=True,
            resolved_real_ip="198.51.100.9",
            require_trusted_proxy=True,
            cdn_cache_size=2,
        )

    @pytest.mark.asyncio
    async def test_untrusted_peer_without_cache(self):
        ctx = _context(peer="203.0.113.50", headers={"X-Real-IP": "198.51.100.1"})
        info = await ctx.debug_info()
        assert info.from_trusted_proxy is False
        assert info.resolved_real_ip == "203.0.113.50"
        assert info.cdn_cache_size == 0
