"""Decorators for read-through caching of functions through cache groups."""

import inspect
from contextvars import ContextVar
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import structlog

from .repository import CacheRepository
from .store import Tags

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])

# None = not a cached call, True = cache hit, False = cache miss
_cache_hit_status: ContextVar[Optional[bool]] = ContextVar("cache_hit_status", default=None)


def get_cache_hit_status() -> Optional[bool]:
    """Get the cache hit status from the current context.

    Returns:
        True if the last remembered call was a cache hit,
        False if it was a cache miss,
        None if no remembered call was made.
    """
    return _cache_hit_status.get()


def clear_cache_hit_status() -> None:
    """Clear the cache hit status in the current context."""
    _cache_hit_status.set(None)


def remembered(
    repository: CacheRepository,
    group_key: str,
    tags: Optional[Tags] = None,
    exclude: tuple[str, ...] = ("self", "cls"),
) -> Callable[[F], F]:
    """Decorator to remember a function's result in a cache group.

    The call arguments, bound by parameter name, become the cache key params.
    The decorated function always becomes a coroutine function.

    Args:
        repository: Repository to read and write through
        group_key: Cache group name
        tags: Tags for stored entries (defaults to the group name)
        exclude: Parameter names left out of the cache key

    Example:
        @remembered(repository, "users.profile")
        async def load_profile(user_id: int) -> dict:
            ...

        # Bypass cache for one call
        await load_profile(42, no_cache=True)
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        async def call(*args: Any, **kwargs: Any) -> Any:
            result = func(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result

        @wraps(func)
        async def wrapper(*args: Any, no_cache: bool = False, **kwargs: Any) -> Any:
            if no_cache:
                return await call(*args, **kwargs)

            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            params = {
                name: value
                for name, value in bound.arguments.items()
                if name not in exclude
            }

            result, hit = await repository.remember_with_status(
                group_key, params, tags, lambda: call(*args, **kwargs)
            )
            _cache_hit_status.set(hit)

            logger.debug(
                "Cache hit" if hit else "Cache miss",
                func=func.__name__,
                group=group_key,
            )
            return result

        return wrapper  # type: ignore

    return decorator
