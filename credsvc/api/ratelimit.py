"""Rate limiting dependency for the business routes.

Applied per route (``/issue``, ``/verify``) rather than as middleware so
that /health, /ready and /metrics are never throttled.  Clients are
keyed by IP: there is no caller authentication to key on.

Every response from a limited route carries X-RateLimit-Limit and
X-RateLimit-Remaining, copied onto the response by
RequestContextMiddleware.  A 429 also carries Retry-After.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from fastapi import Request

from credsvc.core.errors import RateLimited
from credsvc.core.metrics import RATE_LIMIT_HITS
from credsvc.services.rate_limiter import RateLimiter, RateLimitConfig

logger = logging.getLogger(__name__)


def require_rate_limit(route: str):
    """Dependency factory: enforce the app's rate limit on ``route``.

    Usage: ``dependencies=[Depends(require_rate_limit("/issue"))]``
    """

    async def _check(request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiter
        config: RateLimitConfig = request.app.state.rate_limit_config
        key = f"{route}:{_client_ip(request)}"

        try:
            result = await limiter.check(key, config)
        except aioredis.RedisError:
            # Shared limiter unavailable: serve the request rather than fail it
            logger.warning("Rate limiter unavailable, allowing request key=%s", key)
            return

        request.state.rate_limit_headers = {
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
        }

        if not result.allowed:
            RATE_LIMIT_HITS.labels(route=route).inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise RateLimited(result.retry_after)

    return _check


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
