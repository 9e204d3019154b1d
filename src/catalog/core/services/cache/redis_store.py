"""Redis-backed cache store."""

from __future__ import annotations

import json
from typing import Any

from loguru import logger
from redis.asyncio import Redis

from .base import CacheStore


class RedisCacheStore(CacheStore):
    """Cache store on a shared Redis instance.

    Values are stored as JSON strings; ``delete_matched`` walks the keyspace
    with ``SCAN MATCH`` so glob invalidation works across processes.
    """

    def __init__(self, client: Redis, scan_count: int = 500) -> None:
        self._client = client
        self._scan_count = scan_count

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache entry", key=key)
            await self._client.delete(key)
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        payload = json.dumps(value, default=str)
        await self._client.set(key, payload, ex=ttl)

    async def delete(self, key: str) -> bool:
        return bool(await self._client.delete(key))

    async def delete_matched(self, pattern: str) -> int:
        keys = [
            key
            async for key in self._client.scan_iter(match=pattern, count=self._scan_count)
        ]
        if not keys:
            return 0
        return int(await self._client.delete(*keys))
