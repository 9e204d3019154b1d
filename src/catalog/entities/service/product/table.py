"""Product database table model."""

from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from src.catalog.entities.core._base import EntityTable

from .entity import ProductStatus


class ProductTable(EntityTable, table=True):
    """Database persistence model for products.

    This represents how the Product entity is stored in the database.
    It's separate from the domain entity to maintain clean architecture
    while keeping related code together.
    """

    __tablename__ = "products"
    __table_args__ = (
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        sa.CheckConstraint(
            "stock_quantity >= 0", name="ck_products_stock_quantity_non_negative"
        ),
    )

    name: str = Field(index=True, max_length=255)
    price: Decimal = Field(max_digits=10, decimal_places=2)
    status: ProductStatus = Field(default=ProductStatus.ACTIVE, index=True)
    stock_quantity: int = Field(default=0)
