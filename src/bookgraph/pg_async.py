"""
Async PostgreSQL connection manager for high-performance API serving.

Uses psycopg3's native async support for non-blocking database operations,
allowing FastAPI to handle more concurrent requests. Instances are created
explicitly (by the app lifespan or the CLI) and passed to repositories.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from .core.config import Settings

Query = str | sql.Composable


class AsyncPostgresDB:
    """
    Async PostgreSQL database connection manager.

    Provides non-blocking database operations using psycopg3's async API
    with connection pooling for optimal performance.
    """

    def __init__(
        self,
        connection_string: str,
        min_pool_size: int = 2,
        max_pool_size: int = 10,
    ):
        """
        Initialize the async PostgreSQL connection manager.

        Args:
            connection_string: PostgreSQL connection URL.
            min_pool_size: Minimum connections to keep in pool.
            max_pool_size: Maximum connections in pool.
        """
        if not connection_string:
            raise ValueError(
                "DATABASE_URL or SUPABASE_DB_URL environment variable required or connection_string must be provided"
            )

        self.connection_string = connection_string
        self._min_pool_size = min_pool_size
        self._max_pool_size = max(max_pool_size, min_pool_size)
        self._pool: Optional[AsyncConnectionPool] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AsyncPostgresDB":
        """Build a client from application settings."""
        return cls(
            settings.db_url,
            min_pool_size=settings.database_pool_min_size,
            max_pool_size=settings.database_pool_size,
        )

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def initialize(self) -> None:
        """Initialize the connection pool. Call this at app startup."""
        if self._pool is None:
            pool = AsyncConnectionPool(
                self.connection_string,
                min_size=self._min_pool_size,
                max_size=self._max_pool_size,
                kwargs={"row_factory": dict_row},
                open=False,
            )
            await pool.open()
            self._pool = pool

    async def close(self) -> None:
        """Close the connection pool. Call this at app shutdown."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        """Get a connection from the pool."""
        if self._pool is None:
            await self.initialize()
        async with self._pool.connection() as conn:
            yield conn

    async def executescript(self, script: str) -> None:
        """Execute a multi-statement SQL script (no parameters)."""
        async with self.get_connection() as conn:
            await conn.execute(script)
            await conn.commit()

    async def fetchone(self, query: Query, params: tuple = ()) -> Optional[dict[str, Any]]:
        """Execute a query and fetch one result as a dict."""
        async with self.get_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                row = await cur.fetchone()
                return dict(row) if row else None

    async def fetchall(self, query: Query, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a query and fetch all results as dicts."""
        async with self.get_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                rows = await cur.fetchall()
                return [dict(row) for row in rows]

    async def ping(self) -> bool:
        """Run a trivial query to check connectivity."""
        row = await self.fetchone("SELECT 1 AS ok")
        return bool(row and row.get("ok") == 1)
