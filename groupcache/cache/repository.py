"""Cache repository: group resolution, key generation and read-through caching."""

import asyncio
import inspect
import json
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import structlog

from groupcache.config.settings import CacheSettings
from groupcache.exceptions import StoreServerError
from groupcache.logging import log_cache_operation
from groupcache.observability import ErrorReporter, LoggingErrorReporter

from .groups import CacheGroupRegistry, GroupSettings
from .keys import generate_cache_key
from .store import TaggedCacheStore, Tags, normalize_tags

logger = structlog.get_logger()

DEFAULT_TAGS = ("default",)

# Result handed to followers when the caller running the producer is cancelled
_LEADER_CANCELLED = object()

Producer = Callable[[], Union[Any, Awaitable[Any]]]


class CacheRepository:
    """Reads and writes cache groups through a tagged store.

    Every group is addressed as ``"group.key"``. A group is only used when it
    is active and has a key template; otherwise reads return None and writes
    return False without touching the store.
    """

    def __init__(
        self,
        settings: CacheSettings,
        store: TaggedCacheStore,
        reporter: Optional[ErrorReporter] = None,
        coalesce_misses: Optional[bool] = None,
    ):
        """Initialize the repository.

        Args:
            settings: Cache settings, including raw group definitions
            store: Tagged store the repository writes to
            reporter: Error tracker for store failures (logs when omitted)
            coalesce_misses: Override ``settings.coalesce_misses``
        """
        self._settings = settings
        self._registry = CacheGroupRegistry.from_config(settings.groups)
        self._store = store
        self._reporter = reporter or LoggingErrorReporter()
        self._coalesce = (
            settings.coalesce_misses if coalesce_misses is None else coalesce_misses
        )
        self._in_flight: dict[tuple[tuple[str, ...], str], asyncio.Future] = {}

        logger.debug(
            "Cache repository initialized",
            enabled=settings.enabled,
            groups=len(self._registry),
            coalesce=self._coalesce,
        )

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        store: TaggedCacheStore,
        reporter: Optional[ErrorReporter] = None,
    ) -> "CacheRepository":
        """Build a repository from a ``{enabled, lifetime, groups}`` mapping."""
        return cls(CacheSettings.from_mapping(config), store, reporter)

    def is_enabled(self) -> bool:
        """Check if caching is enabled."""
        return bool(self._settings.enabled)

    def resolve_group(self, group_key: str) -> Optional[GroupSettings]:
        """Get group settings if the group can be used for reads and writes."""
        group = self._registry.get(group_key)
        if group is None or not group.usable:
            return None
        return group

    async def remember(
        self,
        group_key: str,
        params: Any = None,
        tags: Optional[Tags] = None,
        producer: Optional[Producer] = None,
    ) -> Any:
        """Get a cached value, or produce and store it on a miss.

        Falsy cached values count as misses, and falsy produced values are
        returned without being stored. The produced value is returned even
        if storing it failed.

        Args:
            group_key: Cache group name
            params: Params used to build the cache key
            tags: Tags for the entry (defaults to the group name)
            producer: Zero-arg callable, may return an awaitable

        Returns:
            Cached or produced value, None if there is no producer
        """
        data, _ = await self.remember_with_status(group_key, params, tags, producer)
        return data

    async def remember_with_status(
        self,
        group_key: str,
        params: Any = None,
        tags: Optional[Tags] = None,
        producer: Optional[Producer] = None,
    ) -> tuple[Any, bool]:
        """Same as remember, also telling whether the value came from the cache.

        Returns:
            Tuple of (value, hit). Callers that joined another caller's
            producer run count as misses.
        """
        start = time.perf_counter()

        data = await self.get(group_key, params, tags)
        if data:
            log_cache_operation("hit", group_key, (time.perf_counter() - start) * 1000)
            return data, True

        if producer is None:
            return None, False

        address = self._address(group_key, params, tags) if self._coalesce else None
        if address is not None:
            data = await self._produce_once(address, group_key, params, tags, producer)
        else:
            data = await self._produce_and_store(group_key, params, tags, producer)

        log_cache_operation("miss", group_key, (time.perf_counter() - start) * 1000)
        return data, False

    async def get(self, group_key: str, params: Any = None, tags: Optional[Tags] = None) -> Any:
        """Retrieve a cached value.

        Returns:
            Stored value, or None when disabled, the group is unusable
            or the entry is missing
        """
        if not self.is_enabled():
            return None

        address = self._address(group_key, params, tags)
        if address is None:
            return None

        tags, cache_key = address
        return await self._store.get(tags, cache_key)

    async def put(
        self,
        group_key: str,
        params: Any,
        data: Any,
        tags: Optional[Tags] = DEFAULT_TAGS,
    ) -> bool:
        """Write a value to the cache.

        A store server error wipes the whole cache and is reported, never
        raised.

        Args:
            group_key: Cache group name
            params: Params used to build the cache key
            data: Value to store
            tags: Tags for the entry; None or empty falls back to the group name

        Returns:
            True if the store accepted the value
        """
        if not self.is_enabled():
            return False

        group = self.resolve_group(group_key)
        if group is None:
            return False

        tags = normalize_tags(tags or group_key)
        cache_key = generate_cache_key(group.key, params)
        ttl = group.lifetime or self._settings.lifetime

        try:
            return bool(await self._store.put(tags, cache_key, data, ttl))
        except StoreServerError as e:
            logger.warning(
                "Store server error on write, wiping cache",
                group=group_key,
                key=cache_key,
                error=e.message,
            )
            await self._wipe_after_error()
            await self._report(e, tags, cache_key)
            return False

    async def forget(self, group_key: str, params: Any = None, tags: Optional[Tags] = None) -> bool:
        """Delete a cached value."""
        if not self.is_enabled():
            return False

        address = self._address(group_key, params, tags)
        if address is None:
            return False

        tags, cache_key = address
        return bool(await self._store.forget(tags, cache_key))

    async def flush(self, tags: Tags) -> bool:
        """Flush every entry carrying any of the tags.

        Runs even when caching is disabled.
        """
        tags = normalize_tags(tags)
        logger.info("Flushing cache tags", tags=list(tags))
        return bool(await self._store.flush(tags))

    async def wipe(self) -> bool:
        """Flush the entire cache."""
        logger.info("Wiping cache")
        return bool(await self._store.flush_all())

    def get_cache_group(self, group_key: str) -> Optional[GroupSettings]:
        """Retrieve a cache group by name."""
        return self._registry.get(group_key)

    def get_cache_groups(self) -> dict[str, GroupSettings]:
        """Retrieve all cache groups."""
        return self._registry.all()

    def get_cache_group_by_group_and_key(self, group: str, key: str) -> Optional[GroupSettings]:
        """Retrieve a cache group by its group and key."""
        return self._registry.get_by_group_and_key(group, key)

    def _address(
        self, group_key: str, params: Any, tags: Optional[Tags]
    ) -> Optional[tuple[tuple[str, ...], str]]:
        group = self.resolve_group(group_key)
        if group is None:
            return None
        return normalize_tags(tags or group_key), generate_cache_key(group.key, params)

    async def _produce_and_store(
        self, group_key: str, params: Any, tags: Optional[Tags], producer: Producer
    ) -> Any:
        data = producer()
        if inspect.isawaitable(data):
            data = await data

        if data:
            await self.put(group_key, params, data, tags)

        return data

    async def _produce_once(
        self,
        address: tuple[tuple[str, ...], str],
        group_key: str,
        params: Any,
        tags: Optional[Tags],
        producer: Producer,
    ) -> Any:
        pending = self._in_flight.get(address)
        if pending is not None:
            logger.debug("Joining in-flight producer", group=group_key, key=address[1])
            data = await asyncio.shield(pending)
            if data is _LEADER_CANCELLED:
                # The leading caller went away; run our own producer
                return await self._produce_once(address, group_key, params, tags, producer)
            return data

        future = asyncio.get_running_loop().create_future()
        self._in_flight[address] = future
        try:
            data = await self._produce_and_store(group_key, params, tags, producer)
        except asyncio.CancelledError:
            future.set_result(_LEADER_CANCELLED)
            raise
        except Exception as e:
            future.set_exception(e)
            # Followers re-raise it; mark retrieved so the loop does not warn
            future.exception()
            raise
        else:
            future.set_result(data)
            return data
        finally:
            if self._in_flight.get(address) is future:
                del self._in_flight[address]

    async def _wipe_after_error(self) -> None:
        try:
            await self._store.flush_all()
        except Exception:
            logger.exception("Cache wipe after store error failed")

    async def _report(self, error: StoreServerError, tags: tuple[str, ...], cache_key: str) -> None:
        try:
            context = json.dumps(
                {
                    "exception": error.message,
                    "type": "store wrong type",
                    "tags": list(tags),
                    "cache_key": cache_key,
                }
            )
            await self._reporter.report(error, context, "error")
        except Exception as e:
            logger.debug("Error reporter failed", error=str(e))
