"""In-process TTL cache shielding the EP Open Data API from repeated reads.

One instance lives on ``app.state.response_cache``. Entries expire after their
own TTL; past ``max_size`` the oldest-stored entries are evicted first.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

# Bump when a cached payload changes shape; old keys are then never read again.
CACHE_VERSION = "v3"


def cache_key(*parts: str | int) -> str:
    """Build a versioned cache key, e.g. ``v3:procedures:2024:30``."""
    return ":".join([CACHE_VERSION, *(str(p) for p in parts)])


@dataclass
class CachedEntry:
    value: Any
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl


class ResponseCache:
    """TTL + capacity bounded key/value cache.

    ``clock`` returns seconds; tests pass a fake one.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        max_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            msg = "max_size must be at least 1"
            raise ValueError(msg)
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        # Insertion order == stored-at order, because set() moves keys to the end.
        self._entries: OrderedDict[str, CachedEntry] = OrderedDict()

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._entries[key] = CachedEntry(
            value=value,
            stored_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        self._entries.move_to_end(key)
        self._cleanup()

    def has(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return False
        return True

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def _cleanup(self) -> None:
        now = self._clock()
        for key in [k for k, e in self._entries.items() if e.is_expired(now)]:
            del self._entries[key]
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: float | None = None,
    ) -> Any:
        """Read-through: return the cached value or await ``loader`` and store it.

        Exceptions from ``loader`` propagate and nothing is cached. Concurrent
        misses on the same key may both load; the later store wins.
        """
        if self.has(key):
            return self._entries[key].value
        value = await loader()
        self.set(key, value, ttl)
        return value
