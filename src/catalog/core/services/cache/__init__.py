from .base import DEFAULT_TTL_SECONDS, CacheStore, NullCacheStore
from .in_memory import InMemoryCacheStore
from .keys import collection_key, invalidate_record, record_key
from .redis_store import RedisCacheStore

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheStore",
    "InMemoryCacheStore",
    "NullCacheStore",
    "RedisCacheStore",
    "collection_key",
    "invalidate_record",
    "record_key",
]
