"""Process-local cache store backed by cachetools."""

from __future__ import annotations

import copy
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any

from cachetools import TLRUCache

from .base import CacheStore


@dataclass(frozen=True)
class _Entry:
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class InMemoryCacheStore(CacheStore):
    """Per-entry TTL cache with LRU eviction once ``maxsize`` is reached.

    Values are deep-copied on the way in and out so callers can never mutate
    what another request will read.
    """

    def __init__(
        self, maxsize: int = 1024, timer: Callable[[], float] = time.monotonic
    ) -> None:
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=maxsize, ttu=_time_to_use, timer=timer
        )

    async def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        return copy.deepcopy(entry.value)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self._cache[key] = _Entry(
            value=copy.deepcopy(value), ttl=math.inf if ttl is None else ttl
        )

    async def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    async def delete_matched(self, pattern: str) -> int:
        self._cache.expire()
        matched = [key for key in list(self._cache.keys()) if fnmatchcase(key, pattern)]
        for key in matched:
            self._cache.pop(key, None)
        return len(matched)

    async def close(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)
