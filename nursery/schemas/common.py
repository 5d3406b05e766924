# nursery/schemas/common.py
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Incoming JSON uses camelCase keys; snake_case is accepted too"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResponseModel(BaseModel):
    """Built from ORM rows by attribute name, serialized with camelCase keys"""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class PaginationInfo(ResponseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(..., description="ceil(total / limit)")


class CategoryRef(ResponseModel):
    """Category embedded in a product payload"""

    id: UUID
    name: str
    slug: str
