"""Cache store primitives: the stored entry and the abstract backend."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """A fetched range set and when it was fetched (epoch seconds)."""

    ranges: list[str] = Field(default_factory=list)
    fetched_at: float = 0.0

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return now - self.fetched_at < ttl_seconds


class CacheStore(ABC):
    """Interface for the single-entry range cache.

    Writes replace the whole entry; readers never observe a partially
    written value.
    """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the stored entry, or ``None`` when absent."""

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry) -> None:
        """Replace the stored entry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the stored entry (no-op when absent)."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release any resources held by the backend."""
