"""
Async PostgreSQL connection management.

A single asyncpg pool is shared by every request; each store call checks a
connection out of the pool for the duration of one round trip. Transient
connection failures are retried with exponential backoff and trigger a pool
rebuild. Query errors raised by PostgreSQL itself are never retried.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import asyncpg
from pydantic import BaseModel, ConfigDict

from arbitrage_hub.config import Settings, settings
from arbitrage_hub.errors import PersistError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    asyncpg.InterfaceError,
    asyncpg.ConnectionDoesNotExistError,
    asyncpg.ConnectionFailureError,
    ConnectionResetError,
    ConnectionRefusedError,
    OSError,
)


class DatabaseConfig(BaseModel):
    """PostgreSQL pool configuration."""

    model_config = ConfigDict(frozen=True)

    url: str = settings.database_url
    min_connections: int = 2
    max_connections: int = 10
    command_timeout: float = 60.0

    # Reconnection settings
    reconnect_max_attempts: int = 5
    reconnect_initial_delay: float = 1.0
    reconnect_max_delay: float = 30.0
    reconnect_multiplier: float = 2.0

    # Retry settings for transient errors
    retry_max_attempts: int = 3
    retry_initial_delay: float = 0.1
    retry_max_delay: float = 2.0

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "DatabaseConfig":
        return cls(
            url=app_settings.database_url,
            min_connections=app_settings.db_min_connections,
            max_connections=app_settings.db_max_connections,
            command_timeout=app_settings.db_command_timeout,
        )


class Database:
    """
    Async PostgreSQL connection manager.

    Usage:
        db = Database(DatabaseConfig())
        await db.initialize()

        rows = await db.fetch("SELECT * FROM market_pairs WHERE exchange_id = $1", exchange_id)

        await db.close()
    """

    def __init__(self, config: Optional[DatabaseConfig] = None) -> None:
        self.config = config or DatabaseConfig()
        self._pool: Optional[asyncpg.Pool] = None
        self._reconnect_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Check if pool is connected and ready."""
        return self._pool is not None and not self._pool._closed

    async def _create_pool(self) -> asyncpg.Pool:
        return await asyncpg.create_pool(
            self.config.url,
            min_size=self.config.min_connections,
            max_size=self.config.max_connections,
            command_timeout=self.config.command_timeout,
        )

    async def initialize(self) -> None:
        """Initialize connection pool."""
        if self._pool is not None:
            return
        self._pool = await self._create_pool()
        logger.info(
            f"Database pool initialized "
            f"(min={self.config.min_connections}, max={self.config.max_connections})"
        )

    async def close(self) -> None:
        """Close connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")

    async def _discard_pool(self) -> None:
        """Drop a broken pool so the next caller rebuilds it."""
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        try:
            await pool.close()
        except TRANSIENT_ERRORS as e:
            logger.debug(f"Ignoring error while closing broken pool: {e}")

    async def _ensure_connected(self) -> None:
        """Rebuild the pool with exponential backoff if it was discarded."""
        if self.is_connected:
            return

        async with self._reconnect_lock:
            if self.is_connected:
                return

            delay = self.config.reconnect_initial_delay
            for attempt in range(1, self.config.reconnect_max_attempts + 1):
                try:
                    logger.info(f"Database reconnect attempt {attempt}/{self.config.reconnect_max_attempts}")
                    pool = await self._create_pool()
                    async with pool.acquire() as conn:
                        await conn.fetchval("SELECT 1")
                    self._pool = pool
                    logger.info("Database reconnected successfully")
                    return
                except asyncio.CancelledError:
                    raise
                except TRANSIENT_ERRORS as e:
                    logger.warning(f"Database reconnect attempt {attempt} failed: {e}")
                    if attempt < self.config.reconnect_max_attempts:
                        await asyncio.sleep(delay)
                        delay = min(delay * self.config.reconnect_multiplier, self.config.reconnect_max_delay)

        raise PersistError(
            f"Database reconnect failed after {self.config.reconnect_max_attempts} attempts"
        )

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        """Check a connection out of the pool."""
        await self._ensure_connected()
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except TRANSIENT_ERRORS as e:
            logger.warning(f"Database connection error: {e}")
            await self._discard_pool()
            raise

    async def health_check(self) -> bool:
        """Return True if the database answers a trivial query."""
        if not self.is_connected:
            return False
        try:
            await self.fetchval("SELECT 1")
            return True
        except (asyncpg.PostgresError, PersistError, *TRANSIENT_ERRORS) as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    async def _with_retry(self, operation, *args, **kwargs):
        """Run an operation, retrying transient connection errors."""
        delay = self.config.retry_initial_delay

        for attempt in range(1, self.config.retry_max_attempts + 1):
            try:
                return await operation(*args, **kwargs)
            except TRANSIENT_ERRORS as e:
                if attempt == self.config.retry_max_attempts:
                    logger.error(f"DB operation failed after {attempt} attempts: {e}")
                    raise
                logger.warning(
                    f"Transient DB error (attempt {attempt}): {e}. "
                    f"Retrying in {delay:.2f}s..."
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.config.retry_max_delay)

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a statement and return its status tag."""
        async def _do_execute():
            async with self.connection() as conn:
                return await conn.execute(query, *args)
        return await self._with_retry(_do_execute)

    async def fetch(self, query: str, *args: Any) -> list[dict[str, Any]]:
        """Fetch all rows as dicts."""
        async def _do_fetch():
            async with self.connection() as conn:
                rows = await conn.fetch(query, *args)
                return [dict(row) for row in rows]
        return await self._with_retry(_do_fetch)

    async def fetchrow(self, query: str, *args: Any) -> Optional[dict[str, Any]]:
        """Fetch a single row as a dict, or None."""
        async def _do_fetchrow():
            async with self.connection() as conn:
                row = await conn.fetchrow(query, *args)
                return dict(row) if row else None
        return await self._with_retry(_do_fetchrow)

    async def fetchval(self, query: str, *args: Any) -> Any:
        """Fetch a single value."""
        async def _do_fetchval():
            async with self.connection() as conn:
                return await conn.fetchval(query, *args)
        return await self._with_retry(_do_fetchval)
