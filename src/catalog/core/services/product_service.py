"""Business operations on products: validation, persistence, cache upkeep."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi.concurrency import run_in_threadpool
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from src.catalog.api.http.errors import NotFoundError, ValidationFailedError
from src.catalog.core.services.cache import CacheStore, invalidate_record
from src.catalog.entities.core.user import User
from src.catalog.entities.service.product import (
    Product,
    ProductRepository,
    validate_product_attributes,
)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"

Notifier = Callable[[Product, User | None], Any]


@dataclass
class ProductCreationResult:
    success: bool
    product: Product | None = None
    errors: list[str] = field(default_factory=list)


def _persistence_reason(exc: SQLAlchemyError) -> str:
    """Driver-level message without SQLAlchemy's statement dump."""
    return str(getattr(exc, "orig", None) or exc).splitlines()[0]


class ProductService:
    """Product writes for one request.

    Every successful write commits first and then drops the affected cache
    entries, so readers never repopulate the cache from uncommitted data.
    """

    def __init__(
        self,
        session: Session,
        cache: CacheStore,
        environment: str = "development",
        notifier: Notifier | None = None,
    ) -> None:
        self._session = session
        self._cache = cache
        self._environment = environment
        self._notifier = notifier
        self._repository = ProductRepository(session)

    async def create(
        self, params: Mapping[str, Any] | None, current_user: User | None = None
    ) -> ProductCreationResult:
        """Validate and persist a new product.

        Never raises: failures come back as ``success=False`` with the
        messages to show the client.
        """
        try:
            validation = validate_product_attributes(params or {})
            if not validation.is_valid:
                return ProductCreationResult(success=False, errors=validation.errors)

            try:
                product = await run_in_threadpool(self._insert, validation.values)
            except SQLAlchemyError as e:
                self._session.rollback()
                reason = _persistence_reason(e)
                logger.error("Product creation failed: {}", reason)
                return ProductCreationResult(
                    success=False, errors=[f"Product could not be saved: {reason}"]
                )
        except Exception:
            self._session.rollback()
            logger.exception("Product creation failed unexpectedly")
            return ProductCreationResult(success=False, errors=[UNEXPECTED_ERROR_MESSAGE])

        await self._invalidate(product.id)
        self._log_creation(product, current_user)
        self._notify(product, current_user)
        return ProductCreationResult(success=True, product=product)

    async def update(self, product_id: str, params: Mapping[str, Any] | None) -> Product:
        """Apply a partial update.

        Raises:
            NotFoundError: No product has ``product_id``
            ValidationFailedError: A supplied attribute is invalid
        """
        if await run_in_threadpool(self._repository.get, product_id) is None:
            raise NotFoundError(f"Product {product_id} not found")

        validation = validate_product_attributes(params or {}, partial=True)
        if not validation.is_valid:
            raise ValidationFailedError(validation.errors)

        try:
            product = await run_in_threadpool(self._apply_update, product_id, validation.values)
        except SQLAlchemyError as e:
            self._session.rollback()
            reason = _persistence_reason(e)
            logger.error("Product update failed: {}", reason)
            raise ValidationFailedError([f"Product could not be saved: {reason}"]) from e

        if product is None:
            raise NotFoundError(f"Product {product_id} not found")

        await self._invalidate(product_id)
        logger.info("Product updated", product_id=product_id, fields=sorted(validation.values))
        return product

    async def delete(self, product_id: str) -> None:
        """Raises NotFoundError when there is nothing to delete."""
        if not await run_in_threadpool(self._remove, product_id):
            raise NotFoundError(f"Product {product_id} not found")
        await self._invalidate(product_id)
        logger.info("Product deleted", product_id=product_id)

    # Blocking session work, run off the event loop

    def _insert(self, values: dict[str, Any]) -> Product:
        product = self._repository.create(Product(**values))
        self._session.commit()
        return product

    def _apply_update(self, product_id: str, values: dict[str, Any]) -> Product | None:
        product = self._repository.update(product_id, values)
        self._session.commit()
        return product

    def _remove(self, product_id: str) -> bool:
        if not self._repository.delete(product_id):
            return False
        self._session.commit()
        return True

    async def _invalidate(self, product_id: str) -> None:
        # Runs after commit: failures are logged, never raised
        try:
            await invalidate_record(self._cache, product_id)
        except Exception:
            logger.opt(exception=True).warning(
                "Cache invalidation failed after commit", product_id=product_id
            )

    def _log_creation(self, product: Product, user: User | None) -> None:
        logger.info(
            "Product created: {} ({}) by {}",
            product.id,
            product.name,
            user.email if user else "system",
        )

    def _notify(self, product: Product, user: User | None) -> None:
        if self._notifier is None or self._environment != "production":
            return
        try:
            self._notifier(product, user)
        except Exception:
            logger.exception("Product creation notifier failed", product_id=product.id)
