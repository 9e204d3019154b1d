from .base import ThrottleResult, ThrottleStore, seconds_until_window_reset
from .in_memory import InMemoryThrottleStore
from .redis_store import RedisThrottleStore
from .strategies import (
    ThrottleRequest,
    ThrottleStrategy,
    build_strategies,
)

__all__ = [
    "InMemoryThrottleStore",
    "RedisThrottleStore",
    "ThrottleRequest",
    "ThrottleResult",
    "ThrottleStore",
    "ThrottleStrategy",
    "build_strategies",
    "seconds_until_window_reset",
]
