"""
Redis caching layer for Users Service.
"""

import asyncio
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from pydantic import ValidationError

from shared.logging import get_logger
from shared.errors import AccessLayerException
from ..errors import CacheUnavailableError
from ..models import UserRecord


USER_CACHE_TTL_SECONDS = 60
USER_KEY_PREFIX = "user:"

_CACHE_FAILURES = (RedisError, asyncio.TimeoutError, OSError)


def cache_key(user_id: int) -> str:
    """Generate cache key for a user snapshot."""
    return f"{USER_KEY_PREFIX}{user_id}"


class RedisUserCache:
    """Redis cache of JSON user snapshots.

    Every Redis failure is raised as ``CacheUnavailableError``; deciding
    whether a failure matters is left to the caller.
    """

    def __init__(self, redis_url: str, *, timeout: float = 0.5, ttl_seconds: int = USER_CACHE_TTL_SECONDS):
        self.redis_url = redis_url
        self.timeout = timeout
        self.ttl_seconds = ttl_seconds
        self.logger = get_logger("users.cache.redis")
        self.redis: Optional[redis.Redis] = None

    async def start(self):
        """Start the Redis cache."""
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.timeout,
                socket_timeout=self.timeout,
                health_check_interval=30
            )

            # Test connection
            await self.redis.ping()

            self.logger.info("Redis cache started")

        except _CACHE_FAILURES as e:
            self.logger.error("Failed to start Redis cache", error=str(e))
            raise AccessLayerException("REDIS_START_FAILED", str(e)) from e

    async def stop(self):
        """Stop the Redis cache."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache stopped")

    def _client(self, operation: str) -> redis.Redis:
        if self.redis is None:
            raise CacheUnavailableError(operation, "cache not started")
        return self.redis

    async def get(self, user_id: int) -> Optional[UserRecord]:
        """Get a cached user snapshot, or None when absent."""
        key = cache_key(user_id)
        try:
            cached_data = await self._client("get").get(key)
            if cached_data is None:
                return None
            return UserRecord.model_validate_json(cached_data)
        except _CACHE_FAILURES as e:
            raise CacheUnavailableError("get", str(e)) from e
        except (UnicodeDecodeError, ValidationError) as e:
            # Undecodable entries read as a miss; the next fill overwrites them
            self.logger.warning("Discarding undecodable cache entry", cache_key=key, error=str(e))
            return None

    async def set(self, user: UserRecord) -> None:
        """Cache a user snapshot with the fixed TTL."""
        key = cache_key(user.id)
        try:
            await self._client("set").set(key, user.model_dump_json(), ex=self.ttl_seconds)
        except _CACHE_FAILURES as e:
            raise CacheUnavailableError("set", str(e)) from e

        self.logger.debug("Cached user", cache_key=key, ttl=self.ttl_seconds)

    async def delete(self, user_id: int) -> int:
        """Delete a cached user snapshot. Returns the number of keys removed."""
        key = cache_key(user_id)
        try:
            return await self._client("delete").delete(key)
        except _CACHE_FAILURES as e:
            raise CacheUnavailableError("delete", str(e)) from e

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._client("ping").ping()
            return True
        except (CacheUnavailableError,) + _CACHE_FAILURES:
            return False
