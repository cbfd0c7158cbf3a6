"""Cache store for the CDN range set.

Two concrete backends:

* Redis — shared across workers; the entry is one JSON value replaced
  with a single ``SET`` (last writer wins).
* Local — in-process ``dict``.  Used automatically when Redis is
  unavailable.
"""

from .base import CacheEntry, CacheStore
from .local_backend import LocalCacheStore
from .redis_backend import RedisCacheStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "LocalCacheStore",
    "RedisCacheStore",
]
