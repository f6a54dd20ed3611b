"""Token-bucket rate limiting for the public endpoints.

Guest enrollment creates users and invoices without authentication, so
it sits behind a bucket.  A bucket holds ``capacity`` tokens, refills at
``refill_rate`` tokens per second, and each request spends one.

InMemoryRateLimiter serves a single process (dev, tests).  With several
API instances the buckets must be shared, so RedisRateLimiter keeps them
in Redis and updates them atomically in a Lua script.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    limit: int
    retry_after: float  # seconds until the next token; 0 when allowed


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    capacity: int = 60
    refill_rate: float = 1.0  # tokens per second


# Guest checkout: a handful of attempts, then one every 30 seconds.
ENROLL_LIMIT = RateLimitConfig(capacity=5, refill_rate=1 / 30)


@runtime_checkable
class RateLimiter(Protocol):
    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult: ...
    async def reset(self, key: str) -> None: ...


class InMemoryRateLimiter:
    def __init__(self) -> None:
        # key -> (tokens, last_refill)
        self._buckets: dict[str, tuple[float, float]] = {}

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = time.monotonic()
        tokens, last_refill = self._buckets.get(key, (float(config.capacity), now))
        tokens = min(config.capacity, tokens + (now - last_refill) * config.refill_rate)

        if tokens >= 1:
            tokens -= 1
            self._buckets[key] = (tokens, now)
            return RateLimitResult(
                allowed=True, remaining=int(tokens), limit=config.capacity, retry_after=0
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
    # KEYS[1] bucket key; ARGV capacity, refill_rate, now.
    # Returns {allowed, remaining, retry_after_ms}.
    _LUA_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local refill_rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])
    local ttl = math.ceil(capacity / refill_rate) + 60

    local bucket = redis.call('HMGET', key, 'tokens', 'last_refill')
    local tokens = tonumber(bucket[1]) or capacity
    local last_refill = tonumber(bucket[2]) or now

    tokens = math.min(capacity, tokens + (now - last_refill) * refill_rate)

    local allowed = 0
    local retry_after_ms = 0
    if tokens >= 1 then
        tokens = tokens - 1
        allowed = 1
    else
        retry_after_ms = math.ceil((1 - tokens) / refill_rate * 1000)
    end

    redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
    redis.call('EXPIRE', key, ttl)
    return {allowed, math.floor(tokens), retry_after_ms}
    """

    def __init__(self, redis_client) -> None:
        self._redis = redis_client
        self._script = redis_client.register_script(self._LUA_SCRIPT)

    async def check(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        allowed, remaining, retry_after_ms = await self._script(
            keys=[f"ratelimit:{key}"],
            args=[config.capacity, config.refill_rate, time.time()],
        )
        return RateLimitResult(
            allowed=bool(allowed),
            remaining=int(remaining) if allowed else 0,
            limit=config.capacity,
            retry_after=retry_after_ms / 1000,
        )

    async def reset(self, key: str) -> None:
        await self._redis.delete(f"ratelimit:{key}")
