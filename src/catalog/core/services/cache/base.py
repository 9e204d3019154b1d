"""Cache store interface shared by the in-memory and Redis backends."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

DEFAULT_TTL_SECONDS = 3600


class CacheStore(ABC):
    """Key-value store with per-entry TTL and glob-pattern deletion.

    Values must be JSON-serializable so that every backend can hold them.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` under ``key``; ``ttl`` of None means no expiry."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete_matched(self, pattern: str) -> int:
        """Delete every key matching the glob ``pattern``; return the count."""
        raise NotImplementedError

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def close(self) -> None:
        return None

    async def fetch(
        self,
        key: str,
        compute: Callable[[], Any | Awaitable[Any]],
        ttl: int = DEFAULT_TTL_SECONDS,
    ) -> Any:
        """Return the cached value for ``key`` or compute, store and return it.

        None results are returned but never stored.
        """
        cached = await self.get(key)
        if cached is not None:
            logger.debug("cache.hit", key=key)
            return cached

        logger.debug("cache.miss", key=key)
        value = compute()
        if inspect.isawaitable(value):
            value = await value
        if value is not None:
            await self.set(key, value, ttl)
        return value


class NullCacheStore(CacheStore):
    """Store used when caching is disabled: never holds anything."""

    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        return None

    async def delete(self, key: str) -> bool:
        return False

    async def delete_matched(self, pattern: str) -> int:
        return 0
