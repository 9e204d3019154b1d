"""Entity: Product."""

from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import Field

from src.catalog.entities.core._base import Entity


class ProductStatus(StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class Product(Entity):
    """Product entity representing a sellable item in the catalogue.

    Field rules (name length, non-negative price and stock, status
    membership) are enforced by ``validate_product_attributes`` before an
    entity is built from request input.
    """

    name: str = Field(description="Display name, 2-255 characters")
    price: Decimal = Field(description="Unit price, two decimal places")
    status: ProductStatus = Field(default=ProductStatus.ACTIVE)
    stock_quantity: int = Field(default=0, description="Units on hand")

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    def __eq__(self, other: Any) -> bool:
        """Compare products by business attributes, ignoring timestamps."""
        if not isinstance(other, Product):
            return False

        return (
            self.id == other.id
            and self.name == other.name
            and self.price == other.price
            and self.status == other.status
            and self.stock_quantity == other.stock_quantity
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.id,
            self.name,
            self.price,
            self.status,
            self.stock_quantity,
        ))
