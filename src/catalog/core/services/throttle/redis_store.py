"""Redis-backed sliding-window throttle store."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable

from redis.asyncio import Redis

from .base import ThrottleResult, ThrottleStore, seconds_until_window_reset

# KEYS[1] = counter key
# ARGV = now_ms, period_ms, limit, member
SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local period = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])

redis.call('ZREMRANGEBYSCORE', key, '-inf', now - period)
local count = redis.call('ZCARD', key)
if count >= limit then
    return {0, count}
end

redis.call('ZADD', key, now, ARGV[4])
redis.call('PEXPIRE', key, period)
return {1, count + 1}
"""


class RedisThrottleStore(ThrottleStore):
    """One sorted set of event timestamps per key, pruned and counted atomically."""

    def __init__(
        self,
        client: Redis,
        clock: Callable[[], float] = time.time,
        key_prefix: str = "throttle:",
    ) -> None:
        self._client = client
        self._clock = clock
        self._key_prefix = key_prefix
        self._script = client.register_script(SLIDING_WINDOW_SCRIPT)

    async def hit(self, key: str, limit: int, period: int) -> ThrottleResult:
        now = self._clock()
        now_ms = int(now * 1000)
        member = f"{now_ms}-{uuid.uuid4().hex}"
        allowed, count = await self._script(
            keys=[key], args=[now_ms, period * 1000, limit, member]
        )
        return ThrottleResult(
            allowed=bool(int(allowed)),
            count=int(count),
            retry_after=seconds_until_window_reset(period, now),
        )

    async def reset(self, key: str | None = None) -> None:
        if key is not None:
            await self._client.delete(key)
            return
        keys = [k async for k in self._client.scan_iter(match=f"{self._key_prefix}*")]
        if keys:
            await self._client.delete(*keys)
