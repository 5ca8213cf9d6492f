"""Application startup and shutdown.

Opens the Redis client and the database pool when their feature flags are
on, publishes them on ``calendarly.state`` and tears them down on exit.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import redis.asyncio as redis
from fastapi import FastAPI
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool

from calendarly import db, state
from calendarly.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class LifespanResources:
    redis_client: redis.Redis | None = None
    db_enabled: bool = False


async def init_redis() -> redis.Redis:
    cfg = get_settings().redis
    pool = RedisConnectionPool(
        host=cfg.host,
        port=cfg.port,
        password=cfg.password or None,
        max_connections=cfg.max_connections,
        timeout=cfg.pool_timeout_sec,
        health_check_interval=cfg.health_check_interval,
        socket_timeout=cfg.socket_timeout,
        socket_connect_timeout=cfg.socket_connect_timeout,
        retry_on_timeout=cfg.retry_on_timeout,
    )
    client = redis.Redis(connection_pool=pool, decode_responses=True)
    # test doubles hand back an awaitable client
    if hasattr(client, "__await__"):
        client = await client
    logger.info("Redis client ready for %s:%d", cfg.host, cfg.port)
    return client


async def init_database() -> bool:
    """Open the pool and migrate; False when disabled or Postgres is unreachable."""
    if not get_settings().features.db:
        logger.info("Database disabled (ENABLE_DB=0)")
        return False
    try:
        await db.init_pool()
    except Exception as e:
        logger.warning("Failed to initialize database: %s", e)
        return False
    return True


async def setup_resources() -> LifespanResources:
    resources = LifespanResources()
    if get_settings().features.redis:
        resources.redis_client = await init_redis()
    resources.db_enabled = await init_database()

    state.redis_client = resources.redis_client
    state.db_ready = resources.db_enabled
    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    if resources.db_enabled:
        try:
            await db.close_pool()
        except Exception as e:
            logger.warning("Failed to close database pool: %s", e)

    client = resources.redis_client
    if client is not None:
        aclose = getattr(client, "aclose", None)
        if callable(aclose):
            await aclose()
        elif callable(getattr(client, "close", None)):
            client.close()

    state.redis_client = None
    state.db_ready = False


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)
