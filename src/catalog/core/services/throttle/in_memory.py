"""Process-local sliding-window throttle store."""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque
from collections.abc import Callable

from loguru import logger

from .base import ThrottleResult, ThrottleStore, seconds_until_window_reset


class InMemoryThrottleStore(ThrottleStore):
    """Simple in-memory store used when Redis isn't available.

    ``clock`` returns epoch seconds and may be replaced in tests to move
    through windows without sleeping.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        cleanup_interval: float = 60.0,
    ) -> None:
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)
        self._periods: dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = clock()

    def _cleanup_old_keys(self, now: float) -> None:
        """Drop keys whose newest event is outside their window."""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        self._last_cleanup = now
        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or hits[-1] <= now - self._periods.get(key, 0)
        ]
        for key in stale:
            del self._hits[key]
            self._periods.pop(key, None)

    async def hit(self, key: str, limit: int, period: int) -> ThrottleResult:
        async with self._lock:
            now = self._clock()
            self._cleanup_old_keys(now)

            hits = self._hits[key]
            self._periods[key] = period
            window_start = now - period
            while hits and hits[0] <= window_start:
                hits.popleft()

            retry_after = seconds_until_window_reset(period, now)
            if len(hits) >= limit:
                return ThrottleResult(allowed=False, count=len(hits), retry_after=retry_after)

            hits.append(now)
            return ThrottleResult(allowed=True, count=len(hits), retry_after=retry_after)

    async def reset(self, key: str | None = None) -> None:
        async with self._lock:
            if key is None:
                self._hits.clear()
                self._periods.clear()
            else:
                self._hits.pop(key, None)
                self._periods.pop(key, None)

    async def close(self) -> None:
        async with self._lock:
            tracked = len(self._hits)
            self._hits.clear()
            self._periods.clear()
        logger.debug(f"Cleaned up local throttle store with {tracked} tracked keys")
