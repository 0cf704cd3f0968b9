"""Token-bucket rate limiting for the business routes.

Each client (keyed by IP) owns a bucket of ``capacity`` tokens that
refills continuously at ``capacity / window_seconds`` tokens per second.
A request spends one token; an empty bucket means 429.  With the
defaults (100 per 900s) a client can burst 100 requests and then
sustain one every nine seconds.

InMemoryRateLimiter keeps buckets per process.  When REDIS_URL is set,
RedisRateLimiter keeps them in Redis so every replica behind the load
balancer draws from the same bucket.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    limit: int
    retry_after: float  # seconds until the next token, 0 when allowed


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    capacity: int = 100
    window_seconds: float = 900.0

    @property
    def refill_rate(self) -> float:
        return self.capacity / self.window_seconds


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


class InMemoryRateLimiter:
    """Per-process token buckets."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        # key -> (tokens_remaining, last_refill_timestamp)
        self._buckets: dict[str, tuple[float, float]] = {}

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = self._clock()
        tokens, last_refill = self._buckets.get(key, (float(config.capacity), now))
        tokens = min(config.capacity, tokens + (now - last_refill) * config.refill_rate)

        if tokens >= 1:
            tokens -= 1
            self._buckets[key] = (tokens, now)
            return RateLimitResult(
                allowed=True,
                remaining=int(tokens),
                limit=config.capacity,
                retry_after=0,
            )

        self._buckets[key] = (tokens, now)
        return RateLimitResult(
            allowed=False,
            remaining=0,
            limit=config.capacity,
            retry_after=(1 - tokens) / config.refill_rate,
        )

    async def reset(self, key: str) -> None:
        self._buckets.pop(key, None)


class RedisRateLimiter:
    """Token buckets stored in Redis hashes, updated by an atomic Lua script.

    The read-refill-spend-write cycle has to run as one step, otherwise
    two replicas could both spend the last token.
    """

    # KEYS[1] bucket key; ARGV capacity, refill_rate, now, ttl
    # Returns {allowed, remaining, retry_after_ms}
    _LUA_SCRIPT = """
    local capacity = tonumber(ARGV[1])
    local rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])
    local ttl = tonumber(ARGV[4])

    local state = redis.call('HMGET', KEYS[1], 'tokens', 'ts')
    local tokens = tonumber(state[1]) or capacity
    local ts = tonumber(state[2]) or now
    tokens = math.min(capacity, tokens + (now - ts) * rate)

    local allowed = 0
    local retry_ms = 0
    if tokens >= 1 then
        tokens = tokens - 1
        allowed = 1
    else
        retry_ms = math.ceil((1 - tokens) / rate * 1000)
    end

    redis.call('HSET', KEYS[1], 'tokens', tokens, 'ts', now)
    redis.call('EXPIRE', KEYS[1], ttl)
    return {allowed, math.floor(tokens), retry_ms}
    """

    def __init__(self, redis_client, prefix: str = "ratelimit") -> None:
        self._redis = redis_client
        self._prefix = prefix
        self._script = None

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        if self._script is None:
            self._script = self._redis.register_script(self._LUA_SCRIPT)
        # An idle bucket is full again after one window; drop it then
        ttl = math.ceil(config.window_seconds) + 60
        allowed, remaining, retry_after_ms = await self._script(
            keys=[self._key(key)],
            args=[config.capacity, config.refill_rate, time.time(), ttl],
        )
        return RateLimitResult(
            allowed=bool(allowed),
            remaining=int(remaining),
            limit=config.capacity,
            retry_after=retry_after_ms / 1000,
        )

    async def reset(self, key: str) -> None:
        await self._redis.delete(self._key(key))
