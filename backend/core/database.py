"""
Async PostgreSQL connection pool module.

This module owns the single asyncpg pool shared by the report stores and the
metrics providers.

Key Components:
- Global connection pool singleton (_pool)
- init_db(): Initialize the connection pool at application startup
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool at application shutdown

Connection Pool Configuration:
- min_size: 2 (minimum idle connections kept in pool)
- max_size: 10 (maximum connections in pool)
- command_timeout: 60 seconds (query timeout)
- json/jsonb codecs: phase outputs are stored as JSONB and round-trip as
  Python dicts and lists

Usage:
    # At application startup (in FastAPI lifespan)
    pool = await init_db()

    # In services
    async with pool.acquire() as conn:
        row = await conn.fetchrow("SELECT * FROM interplay_reports WHERE id = $1", report_id)

    # At application shutdown
    await close_db()

Environment Variables:
    DATABASE_URL: PostgreSQL connection string (Required)
"""

import json
import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from backend.core.config import get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Global Pool Singleton
# =============================================================================

# None until init_db() is called
_pool: Optional[Pool] = None


# =============================================================================
# Connection Setup
# =============================================================================

async def _init_connection(conn: asyncpg.Connection) -> None:
    """Register JSON codecs so JSONB columns accept and return Python objects."""
    for type_name in ('json', 'jsonb'):
        await conn.set_type_codec(
            type_name,
            encoder=lambda value: json.dumps(value, default=str),
            decoder=json.loads,
            schema='pg_catalog',
        )


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    Idempotent: returns the existing pool when one is already open.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=2,
            max_size=10,
            command_timeout=60,
            init=_init_connection,
        )
        logger.info("Database pool initialized")

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Returns:
        Pool: The asyncpg connection pool instance.
    """
    global _pool

    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Idempotent; a later get_db_pool() call opens a fresh pool.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Database pool closed")
