"""Repository tests against an in-memory SQLite database."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlmodel import Session

from src.catalog.core.security import Role
from src.catalog.entities.core.revoked_token import RevokedTokenRepository
from src.catalog.entities.core.user import User, UserRepository
from src.catalog.entities.service.product import (
    Product,
    ProductRepository,
    ProductStatus,
)


def _product(name: str, **overrides) -> Product:
    return Product(name=name, price=Decimal("1.50"), **overrides)


class TestProductRepository:
    def test_create_and_get(self, session: Session):
        repository = ProductRepository(session)
        created = repository.create(_product("Widget", stock_quantity=5))
        session.commit()

        fetched = repository.get(created.id)
        assert fetched == created
        assert fetched.price == Decimal("1.50")
        assert fetched.status is ProductStatus.ACTIVE
        assert fetched.in_stock

    def test_get_missing_returns_none(self, session: Session):
        assert ProductRepository(session).get("missing") is None

    def test_list_page_orders_by_creation(self, session: Session):
        repository = ProductRepository(session)
        base = datetime(2024, 1, 1, tzinfo=UTC)
        for index in range(5):
            repository.create(
                _product(f"Item {index}", created_at=base + timedelta(minutes=index))
            )
        session.commit()

        first_page = repository.list_page(offset=0, limit=2)
        last_page = repository.list_page(offset=4, limit=2)

        assert [p.name for p in first_page] == ["Item 0", "Item 1"]
        assert [p.name for p in last_page] == ["Item 4"]

    def test_count_and_max_updated_at(self, session: Session):
        repository = ProductRepository(session)
        assert repository.count() == 0
        assert repository.max_updated_at() is None

        stamp = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)
        repository.create(_product("Old", updated_at=stamp - timedelta(days=1)))
        repository.create(_product("New", updated_at=stamp))
        session.commit()

        assert repository.count() == 2
        assert repository.max_updated_at() == stamp

    def test_update_refreshes_updated_at(self, session: Session):
        repository = ProductRepository(session)
        stale = datetime(2020, 1, 1, tzinfo=UTC)
        created = repository.create(_product("Widget", updated_at=stale))
        session.commit()

        updated = repository.update(created.id, {"name": "Gadget", "stock_quantity": 2})
        session.commit()

        assert updated is not None
        assert updated.name == "Gadget"
        assert updated.stock_quantity == 2
        assert repository.max_updated_at() > stale

    def test_update_missing_returns_none(self, session: Session):
        assert ProductRepository(session).update("missing", {"name": "x"}) is None

    def test_delete(self, session: Session):
        repository = ProductRepository(session)
        created = repository.create(_product("Widget"))
        session.commit()

        assert repository.delete(created.id) is True
        session.commit()
        assert repository.get(created.id) is None
        assert repository.delete(created.id) is False

    def test_scopes(self, session: Session):
        repository = ProductRepository(session)
        repository.create(_product("Active stocked", stock_quantity=3))
        repository.create(_product("Active empty"))
        repository.create(
            _product("Archived stocked", status=ProductStatus.ARCHIVED, stock_quantity=1)
        )
        session.commit()

        assert {p.name for p in repository.list_active()} == {
            "Active stocked",
            "Active empty",
        }
        assert {p.name for p in repository.list_in_stock()} == {
            "Active stocked",
            "Archived stocked",
        }


class TestUserRepository:
    def test_email_is_stored_lower_case(self, session: Session):
        repository = UserRepository(session)
        created = repository.create(
            User(email="Mixed.Case@Example.com", password_hash="hash", role=Role.ADMIN)
        )
        session.commit()

        assert created.email == "mixed.case@example.com"
        assert repository.get_by_email("MIXED.case@example.com ") == created
        assert repository.exists_by_email("mixed.case@example.com")
        assert repository.get(created.id).role is Role.ADMIN

    def test_unknown_email(self, session: Session):
        assert UserRepository(session).get_by_email("nobody@example.com") is None


class TestRevokedTokenRepository:
    def test_revoke_is_idempotent(self, session: Session):
        repository = RevokedTokenRepository(session)
        expires = datetime.now(UTC) + timedelta(hours=1)

        repository.revoke("jti-1", expires)
        repository.revoke("jti-1", expires)
        session.commit()

        assert repository.is_revoked("jti-1")
        assert not repository.is_revoked("jti-2")
        assert repository.count() == 1

    def test_purge_expired(self, session: Session):
        repository = RevokedTokenRepository(session)
        now = datetime(2024, 1, 1, tzinfo=UTC)
        repository.revoke("expired", now - timedelta(minutes=1))
        repository.revoke("live", now + timedelta(minutes=1))
        session.commit()

        assert repository.purge_expired(now=now) == 1
        session.commit()
        assert not repository.is_revoked("expired")
        assert repository.is_revoked("live")
