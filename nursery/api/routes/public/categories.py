"""Public category endpoints"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from uuid import UUID
import logging

from nursery.api.dependencies import get_category_service
from nursery.schemas.category import CategoryDetail, CategoryListItem
from nursery.services.category_service import CategoryService

logger = logging.getLogger(__name__)

category_router = APIRouter(prefix="/categories")


@category_router.get("")
def list_categories(
    parent_id: Optional[UUID] = Query(None, alias="parentId"),
    service: CategoryService = Depends(get_category_service),
) -> List[CategoryListItem]:
    """Main categories (one per name), or the children of parentId"""
    return service.list_categories(parent_id=parent_id)


@category_router.get("/{slug}")
def get_category(
    slug: str,
    limit: int = Query(20, ge=1, le=100),
    service: CategoryService = Depends(get_category_service),
) -> CategoryDetail:
    """Category page; subcategories and non-main categories are 404"""
    return service.get_category_page(slug, limit=limit)
