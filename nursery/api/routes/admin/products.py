"""Admin API for products and their long-form content"""
from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging

from nursery.api.dependencies import get_product_service
from nursery.db.models.enums import ProductSource
from nursery.schemas.product import ProductContentUpsert, ProductCreate
from nursery.services.product_service import ProductService

logger = logging.getLogger(__name__)

products_admin_router = APIRouter(prefix="/products")


@products_admin_router.get("")
def list_products(
    source: Optional[ProductSource] = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    service: ProductService = Depends(get_product_service),
):
    return service.admin_list_products(offset=offset, limit=limit, source=source)


@products_admin_router.post("", status_code=status.HTTP_201_CREATED)
def create_product(product: ProductCreate, service: ProductService = Depends(get_product_service)):
    return service.create_product(product)


@products_admin_router.get("/{id_or_slug}/content")
def get_product_content(id_or_slug: str, service: ProductService = Depends(get_product_service)):
    """Content of a product, or an empty object when none has been written"""
    content = service.get_content(id_or_slug)
    return content if content is not None else {}


@products_admin_router.post("/{id_or_slug}/content")
def upsert_product_content(
    id_or_slug: str,
    content: ProductContentUpsert,
    service: ProductService = Depends(get_product_service),
):
    return service.upsert_content(id_or_slug, content)
