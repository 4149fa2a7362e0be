"""Cache groups, key generation and read-through caching over a tagged store."""

from .decorators import clear_cache_hit_status, get_cache_hit_status, remembered
from .groups import CacheGroupRegistry, GroupSettings
from .keys import generate_cache_key
from .repository import DEFAULT_TAGS, CacheRepository
from .store import CacheStats, MemoryTaggedStore, TaggedCacheStore, normalize_tags

__all__ = [
    "CacheRepository",
    "CacheGroupRegistry",
    "GroupSettings",
    "DEFAULT_TAGS",
    "TaggedCacheStore",
    "MemoryTaggedStore",
    "CacheStats",
    "normalize_tags",
    "generate_cache_key",
    "remembered",
    "get_cache_hit_status",
    "clear_cache_hit_status",
]
