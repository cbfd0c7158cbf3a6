"""Distributed cache store: one JSON value per key in Redis."""

from __future__ import annotations

import logging

from pydantic import ValidationError
from redis.asyncio import Redis

from .base import CacheEntry, CacheStore

logger = logging.getLogger(__name__)


class RedisCacheStore(CacheStore):
    """Stores the entry as a single JSON string.

    No Redis-side expiry is set: a stale entry must outlive its TTL so
    it can be served when a refresh fails.
    """

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    async def get(self, key: str) -> CacheEntry | None:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding undecodable cache entry at %s", key)
            return None

    async def set(self, key: str, entry: CacheEntry) -> None:
        await self._redis.set(key, entry.model_dump_json())

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def aclose(self) -> None:
        # Redis client lifecycle is managed externally (infra/redis.py).
        pass
