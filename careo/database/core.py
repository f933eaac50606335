# careo/database/core.py

"""
Base database class for composition-based architecture.

Provides async connection pool management for the operations classes.
Operations receive an AsyncDatabase instance and open connections through
get_connection(); nothing else touches the pool.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from ..config import settings
from ..enums import LoggerName, LogSource
from ..services.logger import get_service_logger
from ..utils.time_utils import utc_now

logger = get_service_logger(LoggerName.DATABASE, LogSource.DATABASE)


class AsyncDatabaseCore:
    """
    Core async database functionality for composition-based architecture.

    This class provides connection management and common database operations
    without mixin inheritance.
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """Initialize the AsyncDatabaseCore instance with empty connection pool."""
        self._database_url = database_url or settings.database_url
        self._pool: Optional[AsyncConnectionPool] = None
        self._connection_attempts = 0
        self._failed_connections = 0
        self._last_health_check = None
        self._pool_created_at = None

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def initialize(self) -> None:
        """
        Initialize the async connection pool.

        Creates and opens an AsyncConnectionPool with configuration from settings.
        This method must be called before using any database operations.

        Raises:
            ConnectionError: If the pool cannot be opened
        """
        try:
            self._pool = AsyncConnectionPool(
                self._database_url,
                min_size=2,
                max_size=settings.db_pool_size,
                max_waiting=settings.db_max_overflow,
                timeout=settings.db_pool_timeout,
                kwargs={
                    "row_factory": dict_row,
                    "connect_timeout": 15,
                    "keepalives_idle": 300,
                    "keepalives_interval": 60,
                    "keepalives_count": 5,
                },
                open=False,
            )
            await self._pool.open()
            self._pool_created_at = utc_now()
            self._connection_attempts = 0
            self._failed_connections = 0
        except (psycopg.Error, OSError) as e:
            self._failed_connections += 1
            self._pool = None
            logger.error("Failed to initialize async database pool", exception=e)
            raise ConnectionError("Database pool initialization failed") from e

    async def close(self) -> None:
        """
        Close the connection pool and cleanup resources.

        This should be called during application shutdown to ensure
        all database connections are properly closed.
        """
        if self._pool:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[Any, None]:
        """
        Get an async database connection inside a transaction.

        Failures to acquire or keep a connection (pool timeout, server
        unreachable, connection closed under the block) are raised as
        ConnectionError. Statement errors raised inside the block, including
        operational ones such as QueryCanceled or DeadlockDetected, propagate
        unchanged and roll the transaction back.

        Yields:
            Connection: An async database connection with dict_row factory

        Usage:
            async with db.get_connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT * FROM medication_orders")
                    rows = await cur.fetchall()
        """
        if not self._pool:
            raise ConnectionError("Database pool not initialized")

        self._connection_attempts += 1
        conn = None
        try:
            async with self._pool.connection() as conn:
                async with conn.transaction():
                    yield conn
        except PoolTimeout as e:
            self._failed_connections += 1
            logger.warning(f"Timed out waiting for a database connection: {e}")
            raise ConnectionError("Database connection pool exhausted") from e
        except psycopg.OperationalError as e:
            if conn is not None and not conn.closed:
                raise
            self._failed_connections += 1
            logger.warning(f"Async database connection failed: {e}")
            raise ConnectionError("Database connection failed") from e

    async def get_pool_stats(self) -> Dict[str, Any]:
        """
        Get connection pool statistics for monitoring.

        Returns:
            Dict containing pool health metrics and connection counts
        """
        if not self._pool:
            return {"status": "not_initialized"}

        stats: Dict[str, Any] = {
            "status": "healthy",
            "pool_created_at": (
                self._pool_created_at.isoformat() if self._pool_created_at else None
            ),
            "connection_attempts": self._connection_attempts,
            "failed_connections": self._failed_connections,
            "success_rate": (self._connection_attempts - self._failed_connections)
            / max(self._connection_attempts, 1)
            * 100,
        }
        pool_stats = self._pool.get_stats()
        stats["pool_stats"] = {
            "pool_size": pool_stats.get("pool_size"),
            "pool_available": pool_stats.get("pool_available"),
            "requests_waiting": pool_stats.get("requests_waiting"),
        }
        return stats

    async def health_check(self, timeout: float = 5.0) -> Dict[str, Any]:
        """
        Perform a health check of the database connection.

        Args:
            timeout: Maximum time to wait for health check to complete

        Returns:
            Dict containing health status and response time
        """
        if not self._pool:
            return {"status": "unhealthy", "error": "Pool not initialized"}

        start_time = time.time()

        try:
            async with asyncio.timeout(timeout):
                async with self.get_connection() as conn:
                    async with conn.cursor() as cur:
                        await cur.execute("SELECT NOW() AS now")
                        result = await cur.fetchone()

            self._last_health_check = utc_now()
            return {
                "status": "healthy",
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
                "last_check": self._last_health_check.isoformat(),
                "database_time": result["now"].isoformat() if result else None,
            }

        except asyncio.TimeoutError:
            return {
                "status": "unhealthy",
                "error": f"Health check timed out after {timeout}s",
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
            }
        except (psycopg.Error, ConnectionError) as e:
            return {
                "status": "unhealthy",
                "error": str(e),
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
            }


# Composition-based database class for services and routers
AsyncDatabase = AsyncDatabaseCore
