"""
Users service for the Access Layer.
"""

from typing import Optional

from fastapi import Path

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .cache.redis_cache import RedisUserCache
from .coordinator import UserCache, UserCacheCoordinator, UserStore
from .models import USER_ID_MAX, USER_ID_MIN, UserRecord, UserUpdateRequest
from .persistence.postgres import PostgreSQLUserStore


class UsersService(BaseService):
    """Users service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        store: Optional[UserStore] = None,
        cache: Optional[UserCache] = None,
    ):
        super().__init__("users", 4000, config=config)

        self.store = store if store is not None else PostgreSQLUserStore(
            self.config.postgres_dsn,
            timeout=self.config.store_timeout_seconds,
            min_size=self.config.postgres_pool_min_size,
            max_size=self.config.postgres_pool_max_size,
            seed_sample_users=self.config.seed_sample_users,
            metrics=self.metrics,
        )
        self.cache = cache if cache is not None else RedisUserCache(
            self.config.redis_url,
            timeout=self.config.cache_timeout_seconds,
        )
        self.coordinator = UserCacheCoordinator(self.store, self.cache, metrics=self.metrics)

        self._setup_users_routes()

    def _setup_users_routes(self):
        """Set up users-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "users",
                "message": "Access Layer - Users Service",
                "version": "1.0.0",
                "capabilities": ["caching", "persistence"]
            }

        @self.app.get("/users/{user_id}", response_model=UserRecord)
        async def get_user(user_id: int = Path(..., ge=USER_ID_MIN, le=USER_ID_MAX)):
            """Get a user, served from cache when present."""
            return await self.coordinator.handle_read(user_id)

        @self.app.put("/users/{user_id}", response_model=UserRecord)
        async def update_user(request: UserUpdateRequest, user_id: int = Path(..., ge=USER_ID_MIN, le=USER_ID_MAX)):
            """Update a user and invalidate its cached snapshot."""
            return await self.coordinator.handle_write(user_id, request.name, request.email)

    async def _check_dependencies(self):
        """Check users service dependencies."""
        dependencies = {}

        dependencies["redis"] = "ok" if await self.cache.health_check() else "error"
        dependencies["postgres"] = "ok" if await self.store.health_check() else "error"

        return dependencies

    async def start(self):
        """Start users service components."""
        await self.store.start()
        try:
            await self.cache.start()
        except Exception:
            await self.store.stop()
            raise

        self.logger.info("Users service started")

    async def stop(self):
        """Stop users service components."""
        await self.cache.stop()
        await self.store.stop()

        self.logger.info("Users service stopped")


def create_app():
    """Create users service application."""
    service = UsersService()
    return service.app


def run():
    """Run users service."""
    UsersService().run()


if __name__ == "__main__":
    run()
