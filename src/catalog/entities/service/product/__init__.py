"""Entity package: Product."""

from .entity import Product, ProductStatus
from .repository import ProductRepository
from .table import ProductTable
from .validation import ValidationResult, validate_product_attributes

__all__ = [
    "Product",
    "ProductRepository",
    "ProductStatus",
    "ProductTable",
    "ValidationResult",
    "validate_product_attributes",
]
