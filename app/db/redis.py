"""Redis connection pool.

Mirrors engine.py: with REDIS_URL set a pooled ``redis.asyncio`` client
is created at import; without it ``redis_pool`` is None and the task
queue runs in memory.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


async def ping_redis() -> bool:
    """True when Redis answers PING; False when unconfigured."""
    if redis_pool is None:
        return False
    await redis_pool.ping()  # type: ignore[misc]
    return True


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for the pool, entered from app.main."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured, task queue runs in memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except Exception:
        # Keep serving; completions that need backfill will log the
        # enqueue failure and stay marked certificate_pending.
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
