"""Per-client sliding-window rate limiting."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import TYPE_CHECKING

from jeff.config import settings

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each identity."""

    def __init__(
        self,
        max_requests: int | None = None,
        window_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = (
            max_requests if max_requests is not None else settings.rate_limit_max_requests
        )
        self.window_seconds = (
            window_seconds if window_seconds is not None else settings.rate_limit_window_seconds
        )
        self._clock = clock
        self._requests: dict[str, deque[float]] = {}

    def _prune(self, timestamps: deque[float], now: float) -> None:
        while timestamps and now - timestamps[0] >= self.window_seconds:
            timestamps.popleft()

    def allow(self, identity: str) -> bool:
        """Record a request for *identity* if it fits in the window.

        Denied requests are not recorded.
        """
        now = self._clock()
        timestamps = self._requests.setdefault(identity, deque())
        self._prune(timestamps, now)

        if len(timestamps) >= self.max_requests:
            logger.warning("Rate limit exceeded for %s", identity)
            return False

        timestamps.append(now)
        return True

    def sweep(self) -> int:
        """Forget identities with no requests left in the window."""
        now = self._clock()
        idle = []
        for identity, timestamps in self._requests.items():
            self._prune(timestamps, now)
            if not timestamps:
                idle.append(identity)
        for identity in idle:
            del self._requests[identity]
        return len(idle)

    @property
    def tracked_identities(self) -> int:
        return len(self._requests)

    async def sweep_loop(self, interval: float | None = None) -> None:
        every = interval if interval is not None else settings.rate_limit_sweep_seconds
        while True:
            await asyncio.sleep(every)
            removed = self.sweep()
            if removed:
                logger.debug("Rate limiter forgot %d idle clients", removed)
