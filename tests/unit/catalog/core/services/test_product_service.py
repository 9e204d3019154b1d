"""Tests for product creation, update and deletion."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.catalog.api.http.errors import NotFoundError, ValidationFailedError
from src.catalog.core.services import ProductService
from src.catalog.core.services.cache import InMemoryCacheStore
from src.catalog.core.services.product_service import UNEXPECTED_ERROR_MESSAGE
from src.catalog.entities.core.user import User
from src.catalog.entities.service.product import (
    Product,
    ProductRepository,
    ProductStatus,
)

VALID_PARAMS = {"name": "Widget", "price": "9.99", "stock_quantity": 3}


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: list[tuple[Product, User | None]] = []

    def __call__(self, product: Product, user: User | None) -> None:
        self.calls.append((product, user))


@pytest.fixture
def service(session: Session, cache_store: InMemoryCacheStore) -> ProductService:
    return ProductService(session, cache_store, environment="test")


class TestCreate:
    @pytest.mark.asyncio
    async def test_success(self, service: ProductService, session: Session, admin_user):
        result = await service.create(VALID_PARAMS, current_user=admin_user)

        assert result.success
        assert result.errors == []
        assert result.product.name == "Widget"
        assert result.product.price == Decimal("9.99")
        assert result.product.status is ProductStatus.ACTIVE
        assert ProductRepository(session).get(result.product.id) == result.product

    @pytest.mark.asyncio
    async def test_defaults_applied(self, service: ProductService):
        result = await service.create({"name": "Gadget", "price": 5})

        assert result.success
        assert result.product.stock_quantity == 0
        assert result.product.status is ProductStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_validation_errors(self, service: ProductService, session: Session):
        result = await service.create({"name": "", "price": "-1"})

        assert not result.success
        assert result.product is None
        assert result.errors == [
            "Name is required",
            "Price must be greater than or equal to 0",
        ]
        assert ProductRepository(session).count() == 0

    @pytest.mark.asyncio
    async def test_missing_params(self, service: ProductService):
        result = await service.create(None)
        assert not result.success
        assert "Name is required" in result.errors

    @pytest.mark.asyncio
    async def test_persistence_error(self, service: ProductService, monkeypatch):
        def failing_create(self, product):
            raise IntegrityError(
                "INSERT INTO products", {}, Exception("UNIQUE constraint failed: products.id")
            )

        monkeypatch.setattr(ProductRepository, "create", failing_create)
        result = await service.create(VALID_PARAMS)

        assert not result.success
        assert result.errors == [
            "Product could not be saved: UNIQUE constraint failed: products.id"
        ]

    @pytest.mark.asyncio
    async def test_unexpected_error(self, service: ProductService, monkeypatch):
        def exploding_create(self, product):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(ProductRepository, "create", exploding_create)
        result = await service.create(VALID_PARAMS)

        assert not result.success
        assert result.errors == [UNEXPECTED_ERROR_MESSAGE]
        assert "disk on fire" not in result.errors[0]

    @pytest.mark.asyncio
    async def test_invalidates_cached_pages(
        self, service: ProductService, cache_store: InMemoryCacheStore
    ):
        await cache_store.set("products/all-0-none-page-1-per-10", [])
        await cache_store.set("unrelated", 1)

        await service.create(VALID_PARAMS)

        assert not await cache_store.exists("products/all-0-none-page-1-per-10")
        assert await cache_store.exists("unrelated")


class TestNotifier:
    @pytest.mark.asyncio
    async def test_notifies_in_production(
        self, session: Session, cache_store: InMemoryCacheStore, admin_user
    ):
        notifier = RecordingNotifier()
        service = ProductService(
            session, cache_store, environment="production", notifier=notifier
        )

        result = await service.create(VALID_PARAMS, current_user=admin_user)

        assert len(notifier.calls) == 1
        assert notifier.calls[0] == (result.product, admin_user)

    @pytest.mark.asyncio
    async def test_silent_outside_production(
        self, session: Session, cache_store: InMemoryCacheStore
    ):
        notifier = RecordingNotifier()
        service = ProductService(
            session, cache_store, environment="development", notifier=notifier
        )

        await service.create(VALID_PARAMS)
        assert notifier.calls == []

    @pytest.mark.asyncio
    async def test_failing_notifier_does_not_fail_creation(
        self, session: Session, cache_store: InMemoryCacheStore
    ):
        def notifier(product, user):
            raise ConnectionError("mail server down")

        service = ProductService(
            session, cache_store, environment="production", notifier=notifier
        )

        result = await service.create(VALID_PARAMS)
        assert result.success


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_update(self, service: ProductService):
        created = (await service.create(VALID_PARAMS)).product

        updated = await service.update(created.id, {"price": "12.5", "status": "archived"})

        assert updated.name == "Widget"
        assert updated.price == Decimal("12.50")
        assert updated.status is ProductStatus.ARCHIVED

    @pytest.mark.asyncio
    async def test_missing_product(self, service: ProductService):
        with pytest.raises(NotFoundError):
            await service.update("missing", {"name": "New name"})

    @pytest.mark.asyncio
    async def test_invalid_changes(self, service: ProductService):
        created = (await service.create(VALID_PARAMS)).product

        with pytest.raises(ValidationFailedError) as exc_info:
            await service.update(created.id, {"stock_quantity": -1})

        assert exc_info.value.errors == ["Stock quantity must be a non-negative integer"]

    @pytest.mark.asyncio
    async def test_invalidates_record(
        self, service: ProductService, cache_store: InMemoryCacheStore
    ):
        created = (await service.create(VALID_PARAMS)).product
        await cache_store.set(f"products/{created.id}-1", {"stale": True})

        await service.update(created.id, {"name": "Renamed"})

        assert not await cache_store.exists(f"products/{created.id}-1")


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, service: ProductService, session: Session):
        created = (await service.create(VALID_PARAMS)).product

        await service.delete(created.id)

        assert ProductRepository(session).get(created.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, service: ProductService):
        with pytest.raises(NotFoundError):
            await service.delete("missing")


class UnreachableCache(InMemoryCacheStore):
    async def delete_matched(self, pattern: str) -> int:
        raise ConnectionError("cache unreachable")


class TestCacheOutageAfterCommit:
    @pytest.fixture
    def service(self, session: Session) -> ProductService:
        return ProductService(session, UnreachableCache(), environment="test")

    @pytest.mark.asyncio
    async def test_create_still_succeeds(self, service: ProductService, session: Session):
        result = await service.create(VALID_PARAMS)

        assert result.success
        assert result.errors == []
        assert ProductRepository(session).count() == 1

    @pytest.mark.asyncio
    async def test_update_still_returns_product(self, service: ProductService):
        created = (await service.create(VALID_PARAMS)).product

        updated = await service.update(created.id, {"name": "Renamed"})

        assert updated.name == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_still_completes(self, service: ProductService, session: Session):
        created = (await service.create(VALID_PARAMS)).product

        await service.delete(created.id)

        assert ProductRepository(session).get(created.id) is None
