"""Tests for the @remembered decorator."""

import asyncio

import pytest

from groupcache.cache import (
    CacheRepository,
    MemoryTaggedStore,
    clear_cache_hit_status,
    get_cache_hit_status,
    remembered,
)


class TestRememberedDecorator:
    """Tests for the @remembered decorator."""

    @pytest.fixture(autouse=True)
    def reset_hit_status(self):
        """Reset hit status before each test."""
        clear_cache_hit_status()
        yield
        clear_cache_hit_status()

    @pytest.fixture
    def memory_repository(self, settings):
        return CacheRepository(settings, MemoryTaggedStore())

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, memory_repository):
        """Test that the second call is served from cache."""
        call_count = 0

        @remembered(memory_repository, "users.profile")
        async def load_profile(user_id: int) -> dict:
            nonlocal call_count
            call_count += 1
            return {"id": user_id}

        assert await load_profile(1) == {"id": 1}
        assert get_cache_hit_status() is False

        assert await load_profile(1) == {"id": 1}
        assert get_cache_hit_status() is True
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_arguments_build_the_key(self, repository, mock_store):
        """Test that bound arguments, including defaults, become params."""

        @remembered(repository, "users.profile")
        async def load_profile(user_id: int, locale: str = "en") -> str:
            return f"{user_id}:{locale}"

        await load_profile(5)

        mock_store.get.assert_awaited_once_with(("users.profile",), "users-profile|user_id=5&locale=en")

    @pytest.mark.asyncio
    async def test_sync_function(self, memory_repository):
        """Test that plain functions are wrapped too."""
        call_count = 0

        @remembered(memory_repository, "users.settings", tags="settings")
        def load_settings(user_id):
            nonlocal call_count
            call_count += 1
            return ["dark-mode"]

        assert await load_settings(3) == ["dark-mode"]
        assert await load_settings(3) == ["dark-mode"]
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_self_excluded_from_key(self, repository, mock_store):
        """Test that the instance is not part of the params."""

        class ProfileService:
            @remembered(repository, "users.profile")
            async def load(self, user_id):
                return user_id

        await ProfileService().load(9)

        mock_store.get.assert_awaited_once_with(("users.profile",), "users-profile|user_id=9")

    @pytest.mark.asyncio
    async def test_no_cache_bypasses_cache(self, repository, mock_store):
        """Test that no_cache=True bypasses the cache."""

        @remembered(repository, "users.profile")
        async def load_profile(user_id):
            return user_id

        assert await load_profile(4, no_cache=True) == 4
        mock_store.get.assert_not_called()
        mock_store.put.assert_not_called()
        assert get_cache_hit_status() is None

    @pytest.mark.asyncio
    async def test_shared_producer_run_reports_miss(self, settings, mock_store):
        """Test that concurrent calls sharing one producer run both report a miss."""
        repository = CacheRepository(settings, mock_store, coalesce_misses=True)
        call_count = 0

        @remembered(repository, "users.profile")
        async def load_profile(user_id):
            nonlocal call_count
            call_count += 1
            await asyncio.sleep(0.01)
            return {"id": user_id}

        async def load_and_status():
            await load_profile(1)
            return get_cache_hit_status()

        statuses = await asyncio.gather(load_and_status(), load_and_status())

        assert statuses == [False, False]
        assert call_count == 1
        assert mock_store.get.await_count == 2

    @pytest.mark.asyncio
    async def test_unsupported_argument_types(self, repository):
        """Test that arguments without a stable key form are rejected unless excluded."""

        class Client:
            pass

        @remembered(repository, "users.profile")
        async def load_profile(client, user_id):
            return user_id

        with pytest.raises(TypeError):
            await load_profile(Client(), 1)

        @remembered(repository, "users.profile", exclude=("client",))
        async def load_with_client(client, user_id):
            return user_id

        assert await load_with_client(Client(), 1) == 1
