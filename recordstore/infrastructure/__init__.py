"""
Infrastructure package for recordstore.

Centralizes database connectivity concerns (DSN, pool lifecycle, statement
timeouts). Keep this layer focused on I/O and resource management,
decoupled from statement rendering and error classification.
"""

from recordstore.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    build_dsn,
    create_async_pool,
    open_sync_pool,
)

__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "create_async_pool",
    "open_sync_pool",
]
