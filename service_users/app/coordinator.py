"""
Cache-aside coordinator for Users Service.

Reads consult Redis first and fill it from PostgreSQL on a miss. Writes go
to PostgreSQL and then delete the Redis entry; the new value is never
written to the cache directly, so a cached snapshot is never newer than
the durable row.

Known race: a read that misses, loads the old row, and fills the cache
after a concurrent write has already invalidated leaves a stale entry.
The entry expires with the TTL, which bounds staleness.
"""

from typing import Optional, Protocol

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .errors import CacheUnavailableError, UserNotFoundError
from .models import UserRecord


class UserStore(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def health_check(self) -> bool: ...

    async def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    async def update_user(self, user_id: int, name: str, email: str) -> int: ...


class UserCache(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def health_check(self) -> bool: ...

    async def get(self, user_id: int) -> Optional[UserRecord]: ...

    async def set(self, user: UserRecord) -> None: ...

    async def delete(self, user_id: int) -> int: ...


class UserCacheCoordinator:
    """Cache-aside read path and write-invalidate update path.

    Holds no per-request state. Store errors propagate; cache errors are
    logged, counted and absorbed.
    """

    def __init__(self, store: UserStore, cache: UserCache, metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.cache = cache
        self.metrics = metrics
        self.logger = get_logger("users.coordinator")

    async def handle_read(self, user_id: int) -> UserRecord:
        """Return the user, from cache when possible.

        Raises:
            UserNotFoundError: no row exists; nothing is cached.
            StoreError: the store failed on a cache miss.
        """
        cached = None
        try:
            cached = await self.cache.get(user_id)
        except CacheUnavailableError as e:
            self._cache_failed("get", user_id, e)

        if cached is not None:
            self.logger.info("Cache hit for user", user_id=user_id)
            self._count_lookup("hit")
            return cached

        self.logger.info("Cache miss for user", user_id=user_id)
        self._count_lookup("miss")

        user = await self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        try:
            await self.cache.set(user)
        except CacheUnavailableError as e:
            self._cache_failed("set", user_id, e)

        return user

    async def handle_write(self, user_id: int, name: str, email: str) -> UserRecord:
        """Update the user durably, then invalidate its cache entry.

        Raises:
            UserNotFoundError: no row matched; the cache is not touched.
            StoreError: the update failed; the cache is not touched.
        """
        affected = await self.store.update_user(user_id, name, email)
        if affected == 0:
            raise UserNotFoundError(user_id)

        # Invalidate only after the commit
        try:
            await self.cache.delete(user_id)
            self.logger.info("Cache invalidated for user", user_id=user_id)
        except CacheUnavailableError as e:
            self._cache_failed("delete", user_id, e)

        return UserRecord(id=user_id, name=name, email=email)

    def _count_lookup(self, result: str):
        if self.metrics:
            self.metrics.increment_counter("user_cache_requests_total", result=result)

    def _cache_failed(self, operation: str, user_id: int, error: CacheUnavailableError):
        log = self.logger.error if operation == "delete" else self.logger.warning
        log(
            "Cache unavailable, continuing without it",
            operation=operation,
            user_id=user_id,
            error=error.reason
        )
        if self.metrics:
            self.metrics.increment_counter("user_cache_errors_total", operation=operation)
