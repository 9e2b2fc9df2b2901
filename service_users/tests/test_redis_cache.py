"""
Unit tests for the Users Redis cache.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from shared.errors import AccessLayerException
from service_users.app.cache.redis_cache import RedisUserCache, cache_key
from service_users.app.coordinator import UserCacheCoordinator
from service_users.app.errors import CacheUnavailableError
from service_users.app.models import UserRecord


ALICE_JSON = '{"id": 1, "name": "Alice", "email": "alice@example.com"}'


class TestRedisUserCache:
    """Test cases for RedisUserCache."""

    @pytest.fixture
    def redis_client(self):
        return AsyncMock()

    @pytest.fixture
    def user_cache(self, redis_client):
        user_cache = RedisUserCache("redis://localhost:6379/0")
        user_cache.redis = redis_client
        return user_cache

    def test_cache_key_format(self):
        assert cache_key(1) == "user:1"
        assert cache_key(42) == "user:42"

    @pytest.mark.asyncio
    async def test_get_hit(self, user_cache, redis_client, alice):
        redis_client.get.return_value = ALICE_JSON

        result = await user_cache.get(1)

        assert result == alice
        redis_client.get.assert_called_once_with("user:1")

    @pytest.mark.asyncio
    async def test_get_miss(self, user_cache, redis_client):
        redis_client.get.return_value = None

        assert await user_cache.get(1) is None

    @pytest.mark.asyncio
    async def test_get_undecodable_entry_reads_as_miss(self, user_cache, redis_client):
        redis_client.get.return_value = "not json"

        assert await user_cache.get(1) is None

    @pytest.mark.asyncio
    async def test_get_partial_entry_reads_as_miss(self, user_cache, redis_client):
        redis_client.get.return_value = '{"id": 1, "name": "Alice"}'

        assert await user_cache.get(1) is None

    @pytest.mark.asyncio
    async def test_get_non_utf8_entry_reads_as_miss(self, user_cache, redis_client):
        # decode_responses=True makes the client raise while decoding the reply
        redis_client.get.side_effect = UnicodeDecodeError("utf-8", b"\xff\xfe{", 0, 1, "invalid start byte")

        assert await user_cache.get(1) is None

    @pytest.mark.asyncio
    async def test_non_utf8_entry_falls_back_to_store(self, user_cache, redis_client, store, alice):
        redis_client.get.side_effect = UnicodeDecodeError("utf-8", b"\xff\xfe{", 0, 1, "invalid start byte")
        coordinator = UserCacheCoordinator(store, user_cache)

        result = await coordinator.handle_read(1)

        assert result == alice
        assert store.count("get_user") == 1
        redis_client.set.assert_called_once()
        assert redis_client.set.call_args.args[0] == "user:1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        RedisConnectionError("connection refused"),
        RedisTimeoutError("timed out"),
    ])
    async def test_get_failure_raises_cache_unavailable(self, user_cache, redis_client, error):
        redis_client.get.side_effect = error

        with pytest.raises(CacheUnavailableError) as exc_info:
            await user_cache.get(1)

        assert exc_info.value.operation == "get"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_set_writes_snapshot_with_fixed_ttl(self, user_cache, redis_client):
        user = UserRecord(id=1, name="Alice", email="alice@example.com")

        await user_cache.set(user)

        redis_client.set.assert_called_once()
        args, kwargs = redis_client.set.call_args
        assert args[0] == "user:1"
        assert json.loads(args[1]) == {"id": 1, "name": "Alice", "email": "alice@example.com"}
        assert kwargs == {"ex": 60}

    @pytest.mark.asyncio
    async def test_set_failure_raises_cache_unavailable(self, user_cache, redis_client, alice):
        redis_client.set.side_effect = RedisConnectionError("connection refused")

        with pytest.raises(CacheUnavailableError) as exc_info:
            await user_cache.set(alice)

        assert exc_info.value.operation == "set"

    @pytest.mark.asyncio
    async def test_delete(self, user_cache, redis_client):
        redis_client.delete.return_value = 1

        assert await user_cache.delete(1) == 1
        redis_client.delete.assert_called_once_with("user:1")

    @pytest.mark.asyncio
    async def test_delete_failure_raises_cache_unavailable(self, user_cache, redis_client):
        redis_client.delete.side_effect = RedisTimeoutError("timed out")

        with pytest.raises(CacheUnavailableError) as exc_info:
            await user_cache.delete(1)

        assert exc_info.value.operation == "delete"

    @pytest.mark.asyncio
    async def test_operations_before_start_raise_cache_unavailable(self):
        user_cache = RedisUserCache("redis://localhost:6379/0")

        with pytest.raises(CacheUnavailableError):
            await user_cache.get(1)
        assert await user_cache.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check(self, user_cache, redis_client):
        assert await user_cache.health_check() is True

        redis_client.ping.side_effect = RedisConnectionError("down")
        assert await user_cache.health_check() is False

    @pytest.mark.asyncio
    async def test_start_and_stop(self, redis_client):
        user_cache = RedisUserCache("redis://cache:6379/1", timeout=0.25)

        with patch("service_users.app.cache.redis_cache.redis.from_url", return_value=redis_client) as from_url:
            await user_cache.start()

        from_url.assert_called_once()
        assert from_url.call_args.args[0] == "redis://cache:6379/1"
        assert from_url.call_args.kwargs["socket_timeout"] == 0.25
        redis_client.ping.assert_awaited_once()

        await user_cache.stop()
        redis_client.aclose.assert_awaited_once()
        assert user_cache.redis is None

    @pytest.mark.asyncio
    async def test_start_failure(self, redis_client):
        user_cache = RedisUserCache("redis://cache:6379/1")
        redis_client.ping.side_effect = RedisConnectionError("connection refused")

        with patch("service_users.app.cache.redis_cache.redis.from_url", return_value=redis_client):
            with pytest.raises(AccessLayerException) as exc_info:
                await user_cache.start()

        assert exc_info.value.code == "REDIS_START_FAILED"
