from __future__ import annotations

import asyncio

from meetly.services.rate_limiter import InMemoryRateLimiter, RateLimitConfig


def test_bucket_allows_capacity_then_blocks() -> None:
    limiter = InMemoryRateLimiter()
    config = RateLimitConfig(capacity=3, refill_rate=0.001)

    async def scenario():
        return [await limiter.check("k", config) for _ in range(4)]

    results = asyncio.run(scenario())
    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results[:3]] == [2, 1, 0]
    assert results[3].retry_after > 0


def test_buckets_are_per_key_and_resettable() -> None:
    limiter = InMemoryRateLimiter()
    config = RateLimitConfig(capacity=1, refill_rate=0.001)

    async def scenario():
        first = await limiter.check("a", config)
        blocked = await limiter.check("a", config)
        other = await limiter.check("b", config)
        await limiter.reset("a")
        again = await limiter.check("a", config)
        return first, blocked, other, again

    first, blocked, other, again = asyncio.run(scenario())
    assert first.allowed and not blocked.allowed
    assert other.allowed
    assert again.allowed
