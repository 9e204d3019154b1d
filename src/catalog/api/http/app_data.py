"""Application-wide services built once at startup and shared by requests."""

from dataclasses import dataclass, field

from loguru import logger

from src.catalog.core.services import DbSessionService, JwtService, RedisService
from src.catalog.core.services.cache import (
    CacheStore,
    InMemoryCacheStore,
    NullCacheStore,
    RedisCacheStore,
)
from src.catalog.core.services.product_service import Notifier
from src.catalog.core.services.throttle import (
    InMemoryThrottleStore,
    RedisThrottleStore,
    ThrottleStore,
    ThrottleStrategy,
    build_strategies,
)
from src.catalog.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    config: ConfigData
    database_service: DbSessionService
    redis_service: RedisService
    jwt_service: JwtService
    # Backing key-value store; also holds the IP blocklist
    store: CacheStore
    # Response cache; a NullCacheStore when caching is disabled
    cache: CacheStore
    throttle_store: ThrottleStore
    throttle_strategies: list[ThrottleStrategy] = field(default_factory=list)
    product_notifier: Notifier | None = None

    async def close(self) -> None:
        await self.throttle_store.close()
        await self.store.close()
        await self.redis_service.close()
        self.database_service.dispose()


def build_key_value_stores(
    config: ConfigData, redis_service: RedisService
) -> tuple[CacheStore, ThrottleStore]:
    """Redis-backed stores when a client is available, otherwise in-memory."""
    client = redis_service.get_client()
    if client is not None:
        logger.info("Using Redis-backed cache and throttle stores")
        return RedisCacheStore(client), RedisThrottleStore(client)

    if config.app.environment == "production":
        logger.warning(
            "Redis unavailable in production; cache and throttle counters are per-process"
        )
    else:
        logger.info("Using in-memory cache and throttle stores")
    return InMemoryCacheStore(maxsize=config.cache.max_entries), InMemoryThrottleStore()


def build_application_dependencies(config: ConfigData) -> ApplicationDependencies:
    database_service = DbSessionService(config)
    redis_service = RedisService(config)
    jwt_service = JwtService(config.jwt)
    store, throttle_store = build_key_value_stores(config, redis_service)
    cache = store if config.cache.enabled else NullCacheStore()

    return ApplicationDependencies(
        config=config,
        database_service=database_service,
        redis_service=redis_service,
        jwt_service=jwt_service,
        store=store,
        cache=cache,
        throttle_store=throttle_store,
        throttle_strategies=build_strategies(
            config.rate_limiter, jwt_service.decode_subject
        ),
    )
