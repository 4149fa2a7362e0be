"""Tagged cache store interface and an in-process implementation."""

from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Union

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()

Tags = Union[str, Iterable[str]]


def normalize_tags(tags: Tags) -> tuple[str, ...]:
    """Turn a bare tag or an iterable of tags into a tuple."""
    if isinstance(tags, str):
        return (tags,)
    return tuple(tags)


class TaggedCacheStore(ABC):
    """Key-value cache whose entries are scoped by a set of tags.

    Implementations must treat ``(tags, key)`` as the entry address and drop
    every entry carrying a tag when that tag is flushed.
    """

    @abstractmethod
    async def get(self, tags: tuple[str, ...], key: str) -> Optional[Any]:
        """Get a value, or None if missing or expired."""

    @abstractmethod
    async def put(self, tags: tuple[str, ...], key: str, value: Any, ttl_seconds: int) -> bool:
        """Store a value.

        Raises:
            StoreServerError: If the server rejects the write
        """

    @abstractmethod
    async def forget(self, tags: tuple[str, ...], key: str) -> bool:
        """Delete a single entry."""

    @abstractmethod
    async def flush(self, tags: tuple[str, ...]) -> bool:
        """Delete every entry carrying any of the tags."""

    @abstractmethod
    async def flush_all(self) -> bool:
        """Delete everything in the store."""


class CacheStats(BaseModel):
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    items: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0


class CacheEntry(BaseModel):
    """A single cache entry."""

    tags: tuple[str, ...]
    key: str
    value: Any
    expires_at: datetime


class MemoryTaggedStore(TaggedCacheStore):
    """In-process tagged store with LRU eviction and per-entry expiry."""

    def __init__(self, max_items: int = 1000):
        """Initialize the store.

        Args:
            max_items: Maximum entries kept before LRU eviction
        """
        self._entries: OrderedDict[tuple[tuple[str, ...], str], CacheEntry] = OrderedDict()
        self._max_items = max_items
        self._stats = CacheStats()

    async def get(self, tags: tuple[str, ...], key: str) -> Optional[Any]:
        address = (normalize_tags(tags), key)
        entry = self._entries.get(address)

        if entry is not None:
            if datetime.now() < entry.expires_at:
                self._entries.move_to_end(address)
                self._stats.hits += 1
                logger.debug("Store hit", key=key, tags=list(entry.tags))
                return entry.value
            del self._entries[address]

        self._stats.misses += 1
        logger.debug("Store miss", key=key)
        return None

    async def put(self, tags: tuple[str, ...], key: str, value: Any, ttl_seconds: int) -> bool:
        tags = normalize_tags(tags)
        address = (tags, key)

        self._entries[address] = CacheEntry(
            tags=tags,
            key=key,
            value=value,
            expires_at=datetime.now() + timedelta(seconds=ttl_seconds),
        )
        self._entries.move_to_end(address)

        # Evict oldest if over limit
        while len(self._entries) > self._max_items:
            self._entries.popitem(last=False)

        logger.debug("Store set", key=key, ttl=ttl_seconds, tags=list(tags))
        return True

    async def forget(self, tags: tuple[str, ...], key: str) -> bool:
        return self._entries.pop((normalize_tags(tags), key), None) is not None

    async def flush(self, tags: tuple[str, ...]) -> bool:
        flushed = set(normalize_tags(tags))
        addresses = [a for a, e in self._entries.items() if flushed.intersection(e.tags)]
        for address in addresses:
            del self._entries[address]

        logger.info("Store flushed", tags=sorted(flushed), count=len(addresses))
        return True

    async def flush_all(self) -> bool:
        count = len(self._entries)
        self._entries.clear()
        logger.info("Store wiped", count=count)
        return True

    def get_stats(self) -> CacheStats:
        """Get cache statistics.

        Returns:
            CacheStats with hit/miss counts and item count
        """
        self._stats.items = len(self._entries)
        return self._stats.model_copy()
