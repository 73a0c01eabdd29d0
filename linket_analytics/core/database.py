"""
Async PostgreSQL connection pool module for Supabase database connectivity.

This module provides an async PostgreSQL connection pool using asyncpg. It is
the only place that knows how to reach the store; the analytics query layer
borrows connections from the pool and never writes.

Key Components:
- Global connection pool singleton (_pool)
- is_database_configured(): Whether credentials exist at all
- init_db(): Initialize the connection pool at application startup
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool at application shutdown

Usage:
    # At application startup (in FastAPI lifespan)
    if is_database_configured():
        await init_db()

    # In services
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT id FROM user_profiles WHERE user_id = $1", user_id)

    # At application shutdown
    await close_db()

Environment Variables:
    DATABASE_URL: Supabase PostgreSQL connection string (optional). When absent
        the analytics engine runs in degraded mode.
"""

from typing import Optional

import asyncpg
from asyncpg import Pool

from linket_analytics.core.config import get_settings
from linket_analytics.core.exceptions import StoreUnavailableError


# =============================================================================
# Global Pool Singleton
# =============================================================================

# None until init_db() is called; shared across all async tasks
_pool: Optional[Pool] = None


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

def is_database_configured() -> bool:
    """Return True when DATABASE_URL is set to a non-blank value."""
    return get_settings().store_configured


async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    If the pool is already initialized, the existing pool is returned
    (idempotent behavior).

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        StoreUnavailableError: If DATABASE_URL is not configured.
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()
        if not settings.store_configured:
            raise StoreUnavailableError()

        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        StoreUnavailableError: If DATABASE_URL is not configured.
        asyncpg.PostgresError: If connection to the database fails during lazy init.
    """
    global _pool

    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Idempotent: calling it when the pool is not initialized has no effect.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
