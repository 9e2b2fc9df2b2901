"""
PostgreSQL persistence layer for Users Service.
"""

from contextlib import nullcontext
from typing import Optional

import asyncpg

from shared.logging import get_logger
from shared.errors import AccessLayerException
from shared.metrics import MetricsCollector
from ..errors import StoreError
from ..models import USER_ID_MAX, USER_ID_MIN, UserRecord


SAMPLE_USERS = (
    (1, "Alice", "alice@example.com"),
    (2, "Bob", "bob@example.com"),
)


class PostgreSQLUserStore:
    """PostgreSQL record store accessor for users.

    Point lookups and updates only. Failures surface as ``StoreError``
    with no retries.
    """

    def __init__(
        self,
        dsn: str,
        *,
        timeout: float = 5.0,
        min_size: int = 2,
        max_size: int = 10,
        seed_sample_users: bool = False,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.dsn = dsn
        self.timeout = timeout
        self.min_size = min_size
        self.max_size = max_size
        self.seed_sample_users = seed_sample_users
        self.metrics = metrics
        self.logger = get_logger("users.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the persistence layer."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.timeout
            )

            await self._create_tables()
            if self.seed_sample_users:
                await self._seed_sample_users()

            self.logger.info("PostgreSQL persistence started")

        except Exception as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise AccessLayerException("POSTGRES_START_FAILED", str(e)) from e

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id BIGINT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL
                );
            """)

    async def _seed_sample_users(self):
        """Insert the sample users unless their ids are already taken."""
        async with self.pool.acquire() as conn:
            await conn.executemany("""
                INSERT INTO users (id, name, email) VALUES ($1, $2, $3)
                ON CONFLICT (id) DO NOTHING
            """, SAMPLE_USERS)

        self.logger.info("Sample users seeded", count=len(SAMPLE_USERS))

    def _acquire(self, operation: str):
        if self.pool is None:
            raise StoreError(operation, "store not started")
        return self.pool.acquire(timeout=self.timeout)

    def _time(self, operation: str):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.time_operation("user_store_operation_duration_seconds", operation=operation)

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        """Load a user by id. Returns None when no row matches."""
        if not USER_ID_MIN <= user_id <= USER_ID_MAX:
            return None

        try:
            with self._time("get"):
                async with self._acquire("get") as conn:
                    row = await conn.fetchrow("""
                        SELECT id, name, email FROM users WHERE id = $1
                    """, user_id, timeout=self.timeout)
        except StoreError:
            raise
        except Exception as e:
            self.logger.error("Error loading user", user_id=user_id, error=str(e))
            raise StoreError("get", str(e), {"user_id": user_id}) from e

        if row is None:
            return None

        return self._row_to_user(row)

    async def update_user(self, user_id: int, name: str, email: str) -> int:
        """Overwrite name and email for a user. Returns the affected row count."""
        if not USER_ID_MIN <= user_id <= USER_ID_MAX:
            return 0

        try:
            with self._time("update"):
                async with self._acquire("update") as conn:
                    result = await conn.execute("""
                        UPDATE users SET name = $1, email = $2 WHERE id = $3
                    """, name, email, user_id, timeout=self.timeout)
        except StoreError:
            raise
        except Exception as e:
            self.logger.error("Error updating user", user_id=user_id, error=str(e))
            raise StoreError("update", str(e), {"user_id": user_id}) from e

        # Command status tag, e.g. "UPDATE 1"
        affected = int(result.split()[-1])
        if affected:
            self.logger.info("User updated", user_id=user_id)
        return affected

    def _row_to_user(self, row) -> UserRecord:
        """Convert database row to UserRecord."""
        return UserRecord(
            id=row['id'],
            name=row['name'],
            email=row['email']
        )

    async def health_check(self) -> bool:
        """Check database health."""
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire(timeout=self.timeout) as conn:
                await conn.fetchval("SELECT 1")
                return True
        except Exception:
            return False

