"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from groupcache.cache import CacheRepository, MemoryTaggedStore
from groupcache.config.settings import CacheSettings


@pytest.fixture
def groups_config() -> dict:
    """Group definitions used by most tests."""
    return {
        "users": {
            "profile": {"active": True, "key": "users-profile", "lifetime": 120},
            "settings": {"active": True, "key": "users-settings"},
            "disabled": {"active": False, "key": "users-disabled"},
            "keyless": {"active": True, "key": ""},
        },
        "posts": {
            "list": {"active": True, "key": "posts-list", "lifetime": 0},
        },
    }


@pytest.fixture
def settings(groups_config) -> CacheSettings:
    """Enabled cache settings."""
    return CacheSettings(enabled=True, lifetime=600, groups=groups_config)


@pytest.fixture
def mock_store():
    """Tagged store double that records calls."""
    store = MagicMock()
    store.get = AsyncMock(return_value=None)
    store.put = AsyncMock(return_value=True)
    store.forget = AsyncMock(return_value=True)
    store.flush = AsyncMock(return_value=True)
    store.flush_all = AsyncMock(return_value=True)
    return store


@pytest.fixture
def mock_reporter():
    """Error reporter double."""
    reporter = MagicMock()
    reporter.report = AsyncMock()
    return reporter


@pytest.fixture
def repository(settings, mock_store, mock_reporter) -> CacheRepository:
    """Repository over the store double."""
    return CacheRepository(settings, mock_store, mock_reporter)


@pytest.fixture
def memory_store() -> MemoryTaggedStore:
    """Fresh in-process tagged store."""
    return MemoryTaggedStore(max_items=100)
