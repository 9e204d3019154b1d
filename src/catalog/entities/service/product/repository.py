"""Product repository for data access operations."""

from datetime import datetime
from typing import Any

from sqlmodel import Session, func, select

from src.catalog.entities.core._base import as_utc, utcnow

from .entity import Product, ProductStatus
from .table import ProductTable

# Columns served by the list endpoint
LIST_FIELDS = (
    ProductTable.id,
    ProductTable.name,
    ProductTable.price,
    ProductTable.status,
    ProductTable.stock_quantity,
    ProductTable.created_at,
    ProductTable.updated_at,
)


class ProductRepository:
    """Data-access layer for products.

    Writes are flushed, not committed; the caller owns the transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, product_id: str) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        return Product.model_validate(row, from_attributes=True)

    def list_page(self, offset: int, limit: int) -> list[Product]:
        statement = (
            select(*LIST_FIELDS)
            .order_by(ProductTable.created_at, ProductTable.id)
            .offset(offset)
            .limit(limit)
        )
        rows = self._session.exec(statement).all()
        return [Product.model_validate(dict(row._mapping)) for row in rows]

    def list_active(self) -> list[Product]:
        statement = (
            select(ProductTable)
            .where(ProductTable.status == ProductStatus.ACTIVE)
            .order_by(ProductTable.created_at, ProductTable.id)
        )
        return [
            Product.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def list_in_stock(self) -> list[Product]:
        statement = (
            select(ProductTable)
            .where(ProductTable.stock_quantity > 0)
            .order_by(ProductTable.created_at, ProductTable.id)
        )
        return [
            Product.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement).all()
        ]

    def count(self) -> int:
        statement = select(func.count()).select_from(ProductTable)
        return self._session.exec(statement).one()

    def max_updated_at(self) -> datetime | None:
        statement = select(func.max(ProductTable.updated_at))
        value = self._session.exec(statement).one()
        if value is None:
            return None
        if isinstance(value, str):
            # SQLite hands back aggregate results without type processing
            value = datetime.fromisoformat(value)
        return as_utc(value)

    def create(self, product: Product) -> Product:
        row = ProductTable.model_validate(product.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def update(self, product_id: str, changes: dict[str, Any]) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        for key, value in changes.items():
            setattr(row, key, value)
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def delete(self, product_id: str) -> bool:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
