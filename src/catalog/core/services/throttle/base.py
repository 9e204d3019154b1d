"""Throttle store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


def seconds_until_window_reset(period: int, now: float) -> int:
    """Seconds until the next epoch-aligned boundary of ``period``; always >= 1."""
    return period - (int(now) % period)


@dataclass(frozen=True)
class ThrottleResult:
    allowed: bool
    count: int
    retry_after: int


class ThrottleStore(ABC):
    """Sliding-window event counter keyed by an arbitrary string."""

    @abstractmethod
    async def hit(self, key: str, limit: int, period: int) -> ThrottleResult:
        """Record one event for ``key`` unless ``limit`` events already fall in the window.

        Events older than ``period`` seconds are discarded first. A rejected
        hit is not recorded.
        """
        raise NotImplementedError

    @abstractmethod
    async def reset(self, key: str | None = None) -> None:
        """Forget the events of ``key``, or of every key when None."""
        raise NotImplementedError

    async def close(self) -> None:
        return None
