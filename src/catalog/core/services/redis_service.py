"""Redis connection service for managing Redis client lifecycle and health checks."""

import time
from typing import Any

import redis.asyncio as redis_async
from loguru import logger
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError
from redis.retry import Retry

from src.catalog.runtime.config.config_data import ConfigData
from src.catalog.runtime.context import get_config


class RedisService:
    """Owns the shared async Redis client backing the cache and throttle stores.

    Follows the same pattern as DbSessionService: built once at startup,
    closed on shutdown, health-checked by the readiness probe.
    """

    def __init__(self, config: ConfigData | None = None):
        config = config or get_config()
        redis_config = config.redis

        self._enabled = redis_config.enabled
        self._client: redis_async.Redis | None = None
        self._url = redis_config.url

        if not self._enabled:
            logger.info("Redis is disabled, service will not connect")
            return

        if not self._url:
            logger.info("Redis URL not configured, service will not connect")
            self._enabled = False
            return

        logger.info(
            "Initializing Redis client with connection string: {}",
            redis_config.sanitized_connection_string,
        )

        retry = Retry(ExponentialBackoff(base=1, cap=10), retries=3)

        try:
            self._client = redis_async.from_url(
                redis_config.connection_string,
                encoding="utf-8",
                decode_responses=redis_config.decode_responses,
                encoding_errors="replace",
                max_connections=redis_config.max_connections,
                socket_timeout=redis_config.socket_timeout,
                socket_connect_timeout=redis_config.socket_connect_timeout,
                socket_keepalive=True,
                health_check_interval=30,
                retry=retry,
                client_name="catalog_api",
            )
        except (RedisError, ValueError) as e:
            logger.error(
                "Failed to initialize Redis client",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            self._enabled = False
            self._client = None
            if config.app.environment == "production":
                raise

    def get_client(self) -> redis_async.Redis | None:
        """Return the client, or None when Redis is disabled or unconfigured."""
        if not self._enabled or not self._client:
            return None
        return self._client

    async def health_check(self) -> bool:
        """PING the server; False when disabled or unreachable."""
        if not self._enabled or not self._client:
            return False

        try:
            await self._client.ping()
            return True
        except (RedisError, OSError) as e:
            logger.error(
                "Redis health check failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False

    async def get_info(self) -> dict[str, Any] | None:
        """Get Redis server information for monitoring."""
        if not self._enabled or not self._client:
            return None

        try:
            info = await self._client.info()
        except (RedisError, OSError) as e:
            logger.error(
                "Failed to get Redis info",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return None

        return {
            "version": info.get("redis_version"),
            "uptime_seconds": info.get("uptime_in_seconds"),
            "connected_clients": info.get("connected_clients"),
            "used_memory_human": info.get("used_memory_human"),
        }

    async def test_operation(self) -> bool:
        """Round-trip a short-lived key to prove the server accepts writes."""
        if not self._enabled or not self._client:
            return False

        test_key = f"health_check_test_{time.time()}"
        try:
            await self._client.setex(test_key, 5, "ok")
            result = await self._client.get(test_key)
            await self._client.delete(test_key)
        except (RedisError, OSError) as e:
            logger.error(
                "Redis test operation failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False
        return result in ("ok", b"ok")

    async def close(self) -> None:
        """Close the Redis connection and clean up resources."""
        if not self._client:
            return
        try:
            logger.info("Closing Redis connection")
            await self._client.aclose()
        except (RedisError, OSError) as e:
            logger.error(
                "Error closing Redis connection",
                error_type=type(e).__name__,
                error_message=str(e),
            )
        finally:
            self._client = None

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def url(self) -> str | None:
        return self._url
