"""Fixed-window rate limiting for the summary endpoint.

Two backends with one interface (``await limiter.hit(key)``):

* ``FixedWindowRateLimiter``: per-process table, lazy window reset.
* ``RedisFixedWindowRateLimiter``: shared INCR/EXPIRE counters for
  deployments running several API processes.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from redis.exceptions import RedisError
from starlette.requests import Request

from eurolens.redis_client import get_redis

logger = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int  # seconds; 0 when allowed

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimitExceeded(Exception):
    """Raised by route dependencies; rendered as 429 by the error handlers."""

    def __init__(self, decision: RateLimitDecision) -> None:
        super().__init__(f"Rate limit exceeded, retry after {decision.retry_after}s")
        self.decision = decision


class RateLimiter(Protocol):
    limit: int

    async def hit(self, key: str) -> RateLimitDecision: ...


@dataclass
class _Window:
    started_at: float
    count: int = 0


class FixedWindowRateLimiter:
    """In-memory fixed window per key.

    A key's window starts at its first request and resets lazily on the first
    request after it expires. Expired windows are swept once the table grows
    past ``sweep_threshold`` keys.
    """

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sweep_threshold: int = 10_000,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._windows: dict[str, _Window] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now - w.started_at >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    async def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window_seconds:
            if window is None and len(self._windows) >= self._sweep_threshold:
                self._sweep(now)
            window = _Window(started_at=now)
            self._windows[key] = window

        if window.count >= self.limit:
            retry_after = max(1, math.ceil(window.started_at + self.window_seconds - now))
            return RateLimitDecision(allowed=False, limit=self.limit, remaining=0, retry_after=retry_after)

        window.count += 1
        return RateLimitDecision(allowed=True, limit=self.limit, remaining=self.limit - window.count, retry_after=0)


class RedisFixedWindowRateLimiter:
    """Shared fixed window using atomic Redis counters.

    Windows are aligned to wall-clock multiples of ``window_seconds``. If Redis
    is unavailable the request is let through.
    """

    def __init__(
        self,
        limit: int = 10,
        window_seconds: int = 60,
        prefix: str = "ratelimit:summarize",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._clock = clock

    async def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        window = int(now) // self.window_seconds
        rate_key = f"{self.prefix}:{key}:{window}"

        try:
            redis = get_redis()
            pipe = redis.pipeline()
            pipe.incr(rate_key)
            pipe.expire(rate_key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except (RuntimeError, RedisError, OSError):
            logger.warning("rate_limit_backend_unavailable", key=key)
            return RateLimitDecision(allowed=True, limit=self.limit, remaining=self.limit, retry_after=0)

        current_count: int = results[0]
        if current_count > self.limit:
            retry_after = max(1, math.ceil((window + 1) * self.window_seconds - now))
            return RateLimitDecision(allowed=False, limit=self.limit, remaining=0, retry_after=retry_after)
        return RateLimitDecision(
            allowed=True, limit=self.limit, remaining=max(0, self.limit - current_count), retry_after=0
        )


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"
