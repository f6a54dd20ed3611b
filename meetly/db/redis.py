"""Redis connection pool, present only when REDIS_URL is set.

Redis holds the rate-limit buckets so every API instance shares them.
Consumers check ``redis_pool`` for None and fall back to in-memory.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from meetly.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    if redis_pool is None:
        logger.info("No REDIS_URL configured, rate limits are per process")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except Exception:
        # Start anyway; the limiter errors surface per request.
        logger.exception("Redis connection failed on startup")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
