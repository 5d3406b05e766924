# nursery/schemas/category.py
from pydantic import Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from nursery.schemas.common import ResponseModel, CategoryRef
from nursery.schemas.product import ProductResponse


class CategoryInDB(ResponseModel):
    """Schema for Category as stored in DB (includes DB fields)"""
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    image: Optional[str] = None
    parent_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryCount(ResponseModel):
    products: int = 0


class CategoryListItem(CategoryInDB):
    """Top-level category with its children and product count"""
    children: List[CategoryInDB] = []
    count: CategoryCount = Field(default_factory=CategoryCount, alias="_count")


class CategoryDetail(CategoryInDB):
    """Category page payload: the category, its relatives and newest products"""
    parent: Optional[CategoryInDB] = None
    children: List[CategoryInDB] = []
    products: List[ProductResponse] = []
    count: CategoryCount = Field(default_factory=CategoryCount, alias="_count")


__all__ = [
    "CategoryRef",
    "CategoryInDB",
    "CategoryListItem",
    "CategoryDetail",
]
