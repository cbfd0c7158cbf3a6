"""Shared Redis client for the CDN range cache.

The cache entry is the only thing kept in Redis.  An unreachable server
is not fatal: ``build_redis`` yields ``None`` and ``build_range_cache``
switches to the in-process store, so each worker then fetches the
ranges on its own.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated
from urllib.parse import urlsplit

from fastapi import Depends
from redis.asyncio import Redis

from realip.configs.config import AppConfig, get_app_config
from realip.configs.system import ThirdPartyConfig

logger = logging.getLogger(__name__)


def redacted_uri(uri: str) -> str:
    """``scheme://host:port/db`` with any credentials removed."""
    parts = urlsplit(uri)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}{parts.path}"


def _make_client(config: ThirdPartyConfig) -> Redis:
    timeout = config.redis_connect_timeout.total_seconds()
    return Redis.from_url(
        config.redis_uri,
        decode_responses=True,
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
    )


async def build_redis(
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[Redis | None, None]:
    """Lifespan dependency: a pinged client, or ``None`` when unreachable."""
    target = redacted_uri(config.third_party.redis_uri)
    client = _make_client(config.third_party)
    try:
        await client.ping()
    except Exception as e:
        logger.warning(
            "Redis at %s unreachable (%s); CDN ranges will be cached per process",
            target,
            e,
        )
        await client.aclose()
        yield None
        return

    logger.info("CDN range cache shared via Redis at %s", target)
    try:
        yield client
    finally:
        await client.aclose()
