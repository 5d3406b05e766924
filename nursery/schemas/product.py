# nursery/schemas/product.py
from pydantic import AliasChoices, AnyHttpUrl, Field, field_validator
from typing import List, Optional, Dict, Any
from uuid import UUID
from datetime import datetime

from nursery.db.models.enums import AvailabilityStatus, ProductSource, ProductType
from nursery.schemas.common import RequestModel, ResponseModel, PaginationInfo
from nursery.schemas.common import CategoryRef


class ProductCreate(RequestModel):
    """Schema for creating a new Product through the admin API"""

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: Optional[str] = None
    product_type: ProductType
    price: float = Field(..., gt=0)
    availability: AvailabilityStatus = AvailabilityStatus.IN_STOCK
    category_id: UUID
    source: ProductSource = ProductSource.MANUAL
    source_id: Optional[str] = None
    source_url: Optional[AnyHttpUrl] = None
    botanical_name: Optional[str] = None
    common_name: Optional[str] = None
    image_url: Optional[AnyHttpUrl] = None
    images: Optional[List[AnyHttpUrl]] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_model_fields(self) -> Dict[str, Any]:
        """Column values for the Product model (URLs as plain strings)"""
        data = self.model_dump(exclude={"metadata", "images", "source_url", "image_url"})
        data["source_url"] = str(self.source_url) if self.source_url else None
        data["image_url"] = str(self.image_url) if self.image_url else None
        data["images"] = [str(url) for url in self.images] if self.images else None
        data["product_metadata"] = self.metadata
        return data


class ProductContentUpsert(RequestModel):
    """Long-form content fields; omitted fields are left untouched on update"""

    detailed_description: Optional[str] = None
    growing_requirements: Optional[str] = None
    care_instructions: Optional[str] = None
    uses: Optional[str] = None
    benefits: Optional[str] = None


class ProductContentResponse(ResponseModel):
    id: UUID
    product_id: UUID
    detailed_description: Optional[str] = None
    growing_requirements: Optional[str] = None
    care_instructions: Optional[str] = None
    uses: Optional[str] = None
    benefits: Optional[str] = None
    last_updated_at: Optional[datetime] = None


class ProductResponse(ResponseModel):
    """Schema for API responses"""

    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    product_type: ProductType
    price: float
    availability: AvailabilityStatus
    category_id: Optional[UUID] = None
    source: ProductSource
    source_id: Optional[str] = None
    source_url: Optional[str] = None
    botanical_name: Optional[str] = None
    common_name: Optional[str] = None
    image_url: Optional[str] = None
    images: List[str] = []
    # ORM rows carry it as product_metadata (metadata is taken by SQLAlchemy)
    product_metadata: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("product_metadata", "metadata"),
        serialization_alias="metadata",
    )
    category: Optional[CategoryRef] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("images", mode="before")
    @classmethod
    def images_default(cls, v):
        return v or []


class ProductDetail(ProductResponse):
    content: Optional[ProductContentResponse] = None


class ProductPage(ResponseModel):
    data: List[ProductResponse]
    pagination: PaginationInfo
