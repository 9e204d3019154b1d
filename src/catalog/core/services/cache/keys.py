"""Cache key derivation for product responses.

Keys embed the data they depend on (row count, newest ``updated_at``) so a
stale entry simply stops being addressed; explicit invalidation on write
removes the orphans.
"""

from __future__ import annotations

from datetime import datetime

from loguru import logger

from src.catalog.entities.core._base import as_utc

from .base import CacheStore

PRODUCTS_NAMESPACE = "products"


def collection_key(
    count: int,
    max_updated_at: datetime | None,
    page: int,
    per_page: int,
    namespace: str = PRODUCTS_NAMESPACE,
) -> str:
    """Key for one page of the collection.

    Example: ``products/all-3-20240101T120000.000001-page-1-per-10``
    """
    stamp = (
        as_utc(max_updated_at).strftime("%Y%m%dT%H%M%S.%f")
        if max_updated_at is not None
        else "none"
    )
    return f"{namespace}/all-{count}-{stamp}-page-{page}-per-{per_page}"


def record_key(
    record_id: str, updated_at: datetime, namespace: str = PRODUCTS_NAMESPACE
) -> str:
    """Key for a single record at a given revision (second resolution)."""
    return f"{namespace}/{record_id}-{int(as_utc(updated_at).timestamp())}"


def collection_pattern(namespace: str = PRODUCTS_NAMESPACE) -> str:
    return f"{namespace}/all-*"


def record_pattern(record_id: str, namespace: str = PRODUCTS_NAMESPACE) -> str:
    return f"{namespace}/{record_id}-*"


async def invalidate_record(
    cache: CacheStore, record_id: str, namespace: str = PRODUCTS_NAMESPACE
) -> int:
    """Drop every collection page and every revision of ``record_id``."""
    removed = await cache.delete_matched(collection_pattern(namespace))
    removed += await cache.delete_matched(record_pattern(record_id, namespace))
    logger.debug("cache.invalidate", record_id=record_id, removed=removed)
    return removed
