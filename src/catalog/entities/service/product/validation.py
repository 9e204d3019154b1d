"""Field rules for product attributes.

Both the creation service and the update path validate through
``validate_product_attributes`` so the rules live in exactly one place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .entity import ProductStatus

PERMITTED_ATTRIBUTES = ("name", "price", "status", "stock_quantity")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 255
PRICE_MAX = Decimal("99999999.99")
_CENTS = Decimal("0.01")


@dataclass
class ValidationResult:
    """Accumulated error messages plus the coerced attribute values."""

    errors: list[str] = field(default_factory=list)
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def permitted(attributes: Mapping[str, Any]) -> dict[str, Any]:
    """Drop every key that is not a writable product attribute."""
    return {key: attributes[key] for key in PERMITTED_ATTRIBUTES if key in attributes}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _validate_name(value: Any, result: ValidationResult) -> None:
    if _is_blank(value):
        result.errors.append("Name is required")
        return
    if not isinstance(value, str):
        result.errors.append("Name must be a string")
        return
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        result.errors.append(
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
        return
    result.values["name"] = value


def _validate_price(value: Any, result: ValidationResult) -> None:
    if _is_blank(value):
        result.errors.append("Price is required")
        return
    if isinstance(value, bool):
        result.errors.append("Price must be a number")
        return
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        result.errors.append("Price must be a number")
        return
    if not price.is_finite():
        result.errors.append("Price must be a number")
        return
    if price < 0:
        result.errors.append("Price must be greater than or equal to 0")
        return
    price = price.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if price > PRICE_MAX:
        result.errors.append(f"Price must be less than or equal to {PRICE_MAX}")
        return
    result.values["price"] = price


def _validate_status(value: Any, result: ValidationResult) -> None:
    try:
        result.values["status"] = ProductStatus(value)
    except ValueError:
        result.errors.append("Status must be 'active' or 'archived'")


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _validate_stock_quantity(value: Any, result: ValidationResult) -> None:
    quantity = _coerce_int(value)
    if quantity is None:
        result.errors.append("Stock quantity must be an integer")
        return
    if quantity < 0:
        result.errors.append("Stock quantity must be a non-negative integer")
        return
    result.values["stock_quantity"] = quantity


def validate_product_attributes(
    attributes: Mapping[str, Any], *, partial: bool = False
) -> ValidationResult:
    """Validate and coerce product attributes.

    Args:
        attributes: Raw attribute values, typically a decoded request body.
            Keys outside ``PERMITTED_ATTRIBUTES`` are ignored.
        partial: When True only the keys present are checked (updates).
            When False ``name`` and ``price`` are required and ``status`` /
            ``stock_quantity`` fall back to ``active`` / ``0``.

    Returns:
        ValidationResult with every failure message, in field order, and the
        coerced values for the fields that passed.
    """
    attrs = permitted(attributes)
    result = ValidationResult()

    if not partial or "name" in attrs:
        _validate_name(attrs.get("name"), result)

    if not partial or "price" in attrs:
        _validate_price(attrs.get("price"), result)

    if attrs.get("status") is not None or (partial and "status" in attrs):
        _validate_status(attrs.get("status"), result)
    elif not partial:
        result.values["status"] = ProductStatus.ACTIVE

    if attrs.get("stock_quantity") is not None or (partial and "stock_quantity" in attrs):
        _validate_stock_quantity(attrs.get("stock_quantity"), result)
    elif not partial:
        result.values["stock_quantity"] = 0

    return result
