"""Postgres connections for the query modules.

``init_pool()`` runs at startup when ``ENABLE_DB`` is on and brings the schema
up to date. Queries go through ``_get_connection()``, which borrows from the
pool or, before the pool exists (scripts, tests), opens a one-off connection.
"""

import logging
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from calendarly.config import get_settings

_logger = logging.getLogger(__name__)

_pool: AsyncConnectionPool | None = None


def _get_dsn() -> str:
    return get_settings().postgres.get_dsn()


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return
    pg = get_settings().postgres
    pool = AsyncConnectionPool(
        _get_dsn(),
        min_size=pg.pool_min_size,
        max_size=pg.pool_max_size,
        timeout=pg.pool_timeout,
        max_lifetime=pg.pool_max_lifetime,
        max_idle=pg.pool_max_idle,
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
    await pool.open()
    _pool = pool
    _logger.info("Postgres pool open on %s:%d (min=%d, max=%d)", pg.host, pg.port, pg.pool_min_size, pg.pool_max_size)

    # schema imports this module
    from calendarly.db.schema import _ensure_schema

    await _ensure_schema()


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return
    pool, _pool = _pool, None
    await pool.close()
    _logger.info("Postgres pool closed")


@asynccontextmanager
async def _get_connection(autocommit: bool = True):
    if _pool is None:
        async with await psycopg.AsyncConnection.connect(_get_dsn(), autocommit=autocommit) as conn:
            yield conn
        return
    async with _pool.connection() as conn:
        if autocommit:
            await conn.set_autocommit(True)
        yield conn


def get_pool_stats() -> dict[str, object]:
    """Pool size and queue numbers for ``/health``."""
    if _pool is None:
        return {"status": "not_initialized"}
    stats = _pool.get_stats()
    return {
        "status": "active",
        "size": stats.get("pool_size"),
        "available": stats.get("pool_available"),
        "waiting": stats.get("requests_waiting"),
        "min_size": stats.get("pool_min"),
        "max_size": stats.get("pool_max"),
    }
