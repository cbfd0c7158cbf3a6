"""Single-process cache store backed by a plain ``dict``."""

from __future__ import annotations

from .base import CacheEntry, CacheStore


class LocalCacheStore(CacheStore):
    """In-process store.  Entries are immutable once written."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry.model_copy(deep=True)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def aclose(self) -> None:
        self._entries.clear()
