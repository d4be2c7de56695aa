"""In-memory response cache with per-entry TTL and a periodic sweep."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jeff.config import settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from jeff.chat.models import ChatResponse

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    value: ChatResponse
    created_at: float
    expires_at: float


@dataclass
class CacheStatistics:
    """Process-lifetime counters. They only ever go up."""

    hits: int = 0
    misses: int = 0
    saves: int = 0


class ResponseCache:
    """Fingerprint → ChatResponse store shared by all requests.

    Every operation runs without awaiting, so on a single event loop no two
    requests can interleave inside one. Expired entries read as absent but are
    only removed by ``evict_expired()``, which ``sweep_loop()`` calls on a
    timer.

    Hit and miss counters are bumped by the caller (``record_hit`` /
    ``record_miss``); ``get`` itself has no side effects.
    """

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._stats = CacheStatistics()

    def get(self, key: str) -> ChatResponse | None:
        entry = self._entries.get(key)
        if entry is None or entry.expires_at <= self._clock():
            return None
        return entry.value

    def set(self, key: str, value: ChatResponse) -> None:
        """Store *value* under *key*, replacing any existing entry."""
        now = self._clock()
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + self.ttl_seconds,
        )
        self._stats.saves += 1
        logger.info("Cache save %s (%d entries)", key[:12], len(self._entries))

    def record_hit(self) -> None:
        self._stats.hits += 1

    def record_miss(self) -> None:
        self._stats.misses += 1

    def evict_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("Cache sweep evicted %d entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, Any]:
        """Counters plus the number of entries that have not expired yet."""
        now = self._clock()
        return {
            "count": sum(1 for e in self._entries.values() if e.expires_at > now),
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "saves": self._stats.saves,
            "ttl_seconds": self.ttl_seconds,
        }

    async def sweep_loop(self, interval: float | None = None) -> None:
        """Evict expired entries forever. Run as a background task."""
        every = interval if interval is not None else settings.cache_sweep_seconds
        while True:
            await asyncio.sleep(every)
            self.evict_expired()
