"""
Database connection factory utilities for recordstore.

Provides centralized management of the shared psycopg ``ConnectionPool`` and
creation of asyncpg pools for the async repositories. The PoolManager
singleton ensures the sync pool is closed on application exit.

Startup uses tenacity to retry transient connection failures while the pool
is opened and pinged. Repository calls are never retried here: pool
exhaustion and timeouts surface to the caller.
"""

from __future__ import annotations

import asyncio
import atexit
import threading
from typing import Optional

import asyncpg
import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from recordstore.config import Settings, get_settings
from recordstore.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings, preferring an explicit ``DB_DSN``."""
    settings = settings or get_settings()
    if settings.db_dsn:
        return settings.db_dsn
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def apply_statement_timeout(cur: psycopg.Cursor, timeout_ms: int) -> None:
    """
    Bound every following statement in the current transaction.

    Uses ``set_config(..., is_local => true)`` so the limit ends with the
    transaction and never leaks into the next borrower of the connection.
    A non-positive value leaves the server default in place.
    """
    if timeout_ms <= 0:
        return
    cur.execute("SELECT set_config('statement_timeout', %s, true)", (f"{int(timeout_ms)}ms",))


class PoolManager:
    """
    Thread-safe singleton for managing the shared sync connection pool.

    Handles lifecycle management with automatic cleanup via atexit hook.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._sync_pool = None
                atexit.register(cls._instance.close_all)
            return cls._instance

    def get_sync_pool(self, settings: Optional[Settings] = None) -> ConnectionPool:
        """
        Get or create the synchronous connection pool.

        The pool is created closed; call ``open_sync_pool`` to open and
        verify it.

        Parameters
        ----------
        settings : Settings, optional
            Overrides the cached application settings.

        Returns
        -------
        ConnectionPool
            The managed sync pool instance.
        """
        with self._lock:
            if self._sync_pool is None:
                settings = settings or get_settings()
                self._sync_pool = ConnectionPool(
                    conninfo=build_dsn(settings),
                    min_size=settings.db_min_conns,
                    max_size=settings.db_max_open_conns,
                    max_idle=settings.db_max_idle_time_seconds,
                    timeout=settings.db_query_timeout_seconds,
                    open=False,
                )
            return self._sync_pool

    def close_all(self) -> None:
        """
        Close the managed pool and release resources.

        This is called automatically on exit via atexit hook.
        """
        with self._lock:
            if self._sync_pool is not None:
                try:
                    self._sync_pool.close()
                except Exception:  # noqa: BLE001 - best-effort cleanup at shutdown
                    log.warning("Failed to close connection pool", exc_info=True)
                finally:
                    self._sync_pool = None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError, PoolTimeout)),
    reraise=True,
)
def _open_and_ping(pool: ConnectionPool, timeout: float) -> None:
    pool.open(wait=True, timeout=timeout)
    with pool.connection(timeout=timeout) as conn:
        conn.execute("SELECT 1")


def open_sync_pool(settings: Optional[Settings] = None) -> ConnectionPool:
    """
    Open the shared pool and verify it with ``SELECT 1``.

    Retries up to 3 times with exponential backoff for transient connection
    errors.

    Returns
    -------
    ConnectionPool
        The opened, managed pool.

    Raises
    ------
    psycopg.OperationalError, psycopg_pool.PoolTimeout
        If the database is unreachable after all retry attempts.
    """
    settings = settings or get_settings()
    pool = PoolManager().get_sync_pool(settings)
    _open_and_ping(pool, settings.db_connect_timeout_seconds)
    log.info(
        "database connection pool established",
        extra={"max_size": pool.max_size, "min_size": pool.min_size},
    )
    return pool


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(
        (OSError, ConnectionError, asyncio.TimeoutError, asyncpg.CannotConnectNowError)
    ),
    reraise=True,
)
async def create_async_pool(settings: Optional[Settings] = None) -> asyncpg.Pool:
    """
    Create an asyncpg pool with automatic retry.

    The pool is bound to the running event loop, so it is not cached; the
    caller owns it and must close it.

    Returns
    -------
    asyncpg.Pool
        A ready pool sized from settings.
    """
    settings = settings or get_settings()
    pool = await asyncpg.create_pool(
        build_dsn(settings),
        min_size=settings.db_min_conns,
        max_size=settings.db_max_open_conns,
        max_inactive_connection_lifetime=settings.db_max_idle_time_seconds,
        timeout=settings.db_connect_timeout_seconds,
    )
    log.info("async database connection pool established", extra={"max_size": settings.db_max_open_conns})
    return pool


__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "create_async_pool",
    "open_sync_pool",
]
