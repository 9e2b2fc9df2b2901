"""
Shared fixtures and in-memory doubles for Users service tests.
"""

from typing import Dict, List, Optional, Tuple

import pytest

from shared.config import get_config
from shared.metrics import MetricsCollector
from service_users.app.cache.redis_cache import USER_CACHE_TTL_SECONDS, cache_key
from service_users.app.coordinator import UserCacheCoordinator
from service_users.app.errors import CacheUnavailableError, StoreError
from service_users.app.models import UserRecord


class InMemoryUserStore:
    """Dict-backed user store that records every call."""

    def __init__(self, users: Optional[List[UserRecord]] = None):
        self.rows: Dict[int, UserRecord] = {user.id: user for user in users or []}
        self.calls: List[Tuple] = []
        self.failing = False
        self.started = False

    async def start(self):
        self.started = True

    async def stop(self):
        self.started = False

    async def health_check(self) -> bool:
        return not self.failing

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        self.calls.append(("get_user", user_id))
        if self.failing:
            raise StoreError("get", "connection refused")
        return self.rows.get(user_id)

    async def update_user(self, user_id: int, name: str, email: str) -> int:
        self.calls.append(("update_user", user_id, name, email))
        if self.failing:
            raise StoreError("update", "connection refused")
        if user_id not in self.rows:
            return 0
        self.rows[user_id] = UserRecord(id=user_id, name=name, email=email)
        return 1

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)


class InMemoryUserCache:
    """Redis stand-in keeping raw JSON values and their TTLs."""

    def __init__(self):
        self.entries: Dict[str, Tuple[str, int]] = {}
        self.calls: List[Tuple[str, int]] = []
        self.failing: set = set()
        self.started = False

    def fail(self, *operations: str):
        self.failing.update(operations)

    def _check(self, operation: str):
        if operation in self.failing:
            raise CacheUnavailableError(operation, "connection timed out")

    async def start(self):
        self.started = True

    async def stop(self):
        self.started = False

    async def health_check(self) -> bool:
        return not self.failing

    async def get(self, user_id: int) -> Optional[UserRecord]:
        self.calls.append(("get", user_id))
        self._check("get")
        entry = self.entries.get(cache_key(user_id))
        if entry is None:
            return None
        return UserRecord.model_validate_json(entry[0])

    async def set(self, user: UserRecord) -> None:
        self.calls.append(("set", user.id))
        self._check("set")
        self.entries[cache_key(user.id)] = (user.model_dump_json(), USER_CACHE_TTL_SECONDS)

    async def delete(self, user_id: int) -> int:
        self.calls.append(("delete", user_id))
        self._check("delete")
        return 1 if self.entries.pop(cache_key(user_id), None) is not None else 0

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)


@pytest.fixture
def alice():
    return UserRecord(id=1, name="Alice", email="alice@example.com")


@pytest.fixture
def bob():
    return UserRecord(id=2, name="Bob", email="bob@example.com")


@pytest.fixture
def store(alice, bob):
    return InMemoryUserStore([alice, bob])


@pytest.fixture
def cache():
    return InMemoryUserCache()


@pytest.fixture
def metrics():
    return MetricsCollector("users")


@pytest.fixture
def coordinator(store, cache, metrics):
    return UserCacheCoordinator(store, cache, metrics=metrics)


@pytest.fixture
def config():
    return get_config("users", 4000, env="test", log_level="info")
