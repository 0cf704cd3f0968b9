"""Optional Redis connection.

Only the rate limiter uses Redis, and only when REDIS_URL is set; without
it every replica keeps its own in-memory buckets.  Like the record store,
the client is built by the app factory and closed by the lifespan hook.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


def build_redis(redis_url: str) -> aioredis.Redis:  # type: ignore[type-arg]
    return aioredis.from_url(
        redis_url,
        decode_responses=True,
        max_connections=20,
    )


@asynccontextmanager
async def lifespan_redis(
    client: aioredis.Redis | None,  # type: ignore[type-arg]
) -> AsyncGenerator[None, None]:
    """Verify connectivity on startup and close the pool on shutdown."""
    if client is None:
        logger.info("No REDIS_URL configured, rate limiting is per-process")
        yield
        return

    try:
        await client.ping()  # type: ignore[misc]
        logger.info("Redis connected for shared rate limiting")
    except aioredis.RedisError:
        # Keep serving; each rate-limit check will fail open (see api/ratelimit.py)
        logger.exception("Redis connection failed on startup")

    try:
        yield
    finally:
        await client.aclose()
        logger.info("Redis connection pool closed")
