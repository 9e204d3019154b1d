"""Product API router with CRUD operations."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session

from src.catalog.api.http.deps import (
    get_app_config,
    get_cache,
    get_db_session,
    get_page_params,
    get_product_service,
    require_admin,
    require_capability,
)
from src.catalog.api.http.errors import (
    BadRequestError,
    NotFoundError,
    ValidationFailedError,
)
from src.catalog.core.pagination import PageParams, build_pagination_meta
from src.catalog.core.security import Capability
from src.catalog.core.services import ProductService
from src.catalog.core.services.cache import CacheStore, collection_key, record_key
from src.catalog.entities.core._base import as_utc
from src.catalog.entities.core.user import User
from src.catalog.entities.service.product import (
    Product,
    ProductRepository,
    ProductStatus,
)
from src.catalog.runtime.config.config_data import ConfigData

router = APIRouter(prefix="/api/v1/products", tags=["products"])

MISSING_PRODUCT_MESSAGE = "param is missing or the value is empty: product"


class ProductRead(BaseModel):
    """Public JSON shape of a product; price is rendered as a number."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    price: float
    status: ProductStatus
    stock_quantity: int
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ProductEnvelope(BaseModel):
    product: dict[str, Any] | None = None


def serialize_product(product: Product) -> dict[str, Any]:
    return ProductRead.model_validate(product).model_dump(mode="json")


def _require_product_params(payload: ProductEnvelope) -> dict[str, Any]:
    if not payload.product:
        raise BadRequestError(MISSING_PRODUCT_MESSAGE)
    return payload.product


@router.get("")
async def list_products(
    page_params: PageParams = Depends(get_page_params),
    session: Session = Depends(get_db_session),
    cache: CacheStore = Depends(get_cache),
    config: ConfigData = Depends(get_app_config),
    _user: User = Depends(require_capability(Capability.PRODUCTS_READ)),
) -> dict[str, Any]:
    """List one page of products with pagination metadata."""
    repository = ProductRepository(session)
    total_count = await run_in_threadpool(repository.count)
    key = collection_key(
        total_count,
        await run_in_threadpool(repository.max_updated_at),
        page_params.page,
        page_params.per_page,
    )

    def load_page() -> list[dict[str, Any]]:
        return [
            serialize_product(product)
            for product in repository.list_page(page_params.offset, page_params.per_page)
        ]

    products = await cache.fetch(
        key,
        lambda: run_in_threadpool(load_page),
        ttl=config.cache.default_ttl_seconds,
    )
    meta = build_pagination_meta(total_count, page_params)
    return {"products": products, "meta": meta.model_dump()}


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    session: Session = Depends(get_db_session),
    cache: CacheStore = Depends(get_cache),
    config: ConfigData = Depends(get_app_config),
    _user: User = Depends(require_capability(Capability.PRODUCTS_READ)),
) -> dict[str, Any]:
    """Get a product by ID."""
    product = await run_in_threadpool(ProductRepository(session).get, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")

    payload = await cache.fetch(
        record_key(product.id, product.updated_at),
        lambda: serialize_product(product),
        ttl=config.cache.default_ttl_seconds,
    )
    return {"product": payload}


@router.post("", status_code=201)
async def create_product(
    payload: ProductEnvelope,
    user: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    """Create a new product."""
    result = await service.create(_require_product_params(payload), user)
    if not result.success or result.product is None:
        raise ValidationFailedError(result.errors)
    return {"product": serialize_product(result.product)}


@router.put("/{product_id}")
@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductEnvelope,
    _user: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
) -> dict[str, Any]:
    """Update the supplied attributes of a product."""
    product = await service.update(product_id, _require_product_params(payload))
    return {"product": serialize_product(product)}


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: str,
    _user: User = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
) -> Response:
    """Delete a product."""
    await service.delete(product_id)
    return Response(status_code=204)
