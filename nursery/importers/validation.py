# nursery/importers/validation.py
"""Validation and normalisation of product records coming from the partner site."""
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import Field, ValidationError, field_validator

from nursery.core.categories import NON_CATEGORY_SEGMENT, generate_slug
from nursery.db.models.enums import AvailabilityStatus
from nursery.schemas.common import RequestModel


class ProductValidationError(ValueError):
    def __init__(self, errors: List[str]):
        super().__init__(f"Invalid product: {', '.join(errors)}")
        self.errors = errors


def _check_http_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"not a valid URL: {value}")
    return value


class PlantmarkProduct(RequestModel):
    """A product as listed or detailed by the partner site (camelCase keys)"""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    botanical_name: Optional[str] = None
    common_name: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    availability: Optional[AvailabilityStatus] = None
    category: Optional[str] = None
    categories: Optional[List[str]] = None
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    source_url: str
    source_id: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    care_instructions: Optional[str] = None
    planting_instructions: Optional[str] = None
    variants: Optional[List[Dict[str, Any]]] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("id", "source_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v):
        # listing pages expose numeric product ids
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("image_url", "source_url")
    @classmethod
    def check_url(cls, v):
        return _check_http_url(v)

    @field_validator("images")
    @classmethod
    def check_urls(cls, v):
        if v is None:
            return v
        return [_check_http_url(url) for url in v]


def validate_product(data: Dict[str, Any]) -> PlantmarkProduct:
    """Parse a raw record, raising ProductValidationError with 'field: message' entries"""
    try:
        return PlantmarkProduct.model_validate(data)
    except ValidationError as e:
        raise ProductValidationError(
            [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e


def slug_from_source_url(source_url: Optional[str]) -> Optional[str]:
    """Last path segment of the partner URL, which is the partner's own slug"""
    if not source_url:
        return None
    try:
        path = urlparse(source_url).path
    except ValueError:
        return None
    parts = [part for part in path.split("/") if part and part != NON_CATEGORY_SEGMENT]
    return parts[-1] if parts else None


def normalize_product(product: PlantmarkProduct) -> PlantmarkProduct:
    """Fill in the slug and trim free-text fields"""
    slug = product.slug or slug_from_source_url(product.source_url) or generate_slug(product.name)

    def _trim(value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None

    return product.model_copy(
        update={
            "slug": slug,
            "name": product.name.strip(),
            "description": _trim(product.description),
            "botanical_name": _trim(product.botanical_name),
            "common_name": _trim(product.common_name),
        }
    )
