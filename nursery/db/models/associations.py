# nursery/db/models/associations.py
from sqlalchemy import Table, Column, ForeignKey, Uuid
from nursery.db.base import Base

# Product to Category many-to-many association
product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("product_id", Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Uuid(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)
