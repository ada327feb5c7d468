"""Redis client lifecycle.

Redis backs the shared summary rate limiter when several API processes run
behind one load balancer. The in-memory limiter needs none of this.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the Redis client. No connection is opened until first use."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )


async def close_redis() -> None:
    """Close the Redis client and its pool."""
    global _client  # noqa: PLW0603
    if _client:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the Redis client."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


async def redis_is_healthy() -> bool:
    """Ping Redis; False when uninitialized or unreachable."""
    try:
        return bool(await get_redis().ping())
    except (RuntimeError, redis.RedisError, OSError):
        return False
