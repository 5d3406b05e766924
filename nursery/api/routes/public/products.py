"""Public product endpoints"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from uuid import UUID

from nursery.api.dependencies import get_product_service
from nursery.db.models.enums import ProductType
from nursery.schemas.product import ProductDetail, ProductPage
from nursery.services.product_service import ProductService

product_router = APIRouter(prefix="/products")


@product_router.get("")
def list_products(
    category_id: Optional[UUID] = Query(None, alias="categoryId"),
    product_type: Optional[ProductType] = Query(None, alias="productType"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: ProductService = Depends(get_product_service),
) -> ProductPage:
    return service.list_products(page=page, limit=limit, category_id=category_id, product_type=product_type)


@product_router.get("/{id_or_slug}")
def get_product(id_or_slug: str, service: ProductService = Depends(get_product_service)) -> ProductDetail:
    """Look a product up by id, falling back to slug"""
    return service.get_product(id_or_slug)


@product_router.get("/{id_or_slug}/related")
def get_related_products(id_or_slug: str, service: ProductService = Depends(get_product_service)):
    return {"products": service.get_related_products(id_or_slug)}
