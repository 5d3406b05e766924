# nursery/db/models/product.py
from sqlalchemy import (
    Column,
    String,
    Text,
    ForeignKey,
    Uuid,
    Numeric,
    DateTime,
    Enum,
    func,
)
from sqlalchemy.orm import relationship
from nursery.db.base import Base
from nursery.db.models.associations import product_categories
from nursery.db.models.enums import AvailabilityStatus, ProductSource, ProductType
from nursery.db.models.types import JSONDocument, utcnow
import uuid


class Product(Base):
    """
    Product sold by the nursery, either imported from the partner site or
    entered through the admin API.
    """

    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    # Intended to be unique; legacy imports produced collisions, so not enforced
    slug = Column(String, nullable=False, index=True)
    description = Column(Text)
    product_type = Column(Enum(ProductType, name="product_type"), nullable=False, default=ProductType.PHYSICAL)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    availability = Column(
        Enum(AvailabilityStatus, name="availability_status"),
        nullable=False,
        default=AvailabilityStatus.IN_STOCK,
    )
    # Legacy single-category pointer; product_categories holds the full membership
    category_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    source = Column(Enum(ProductSource, name="product_source"), nullable=False, default=ProductSource.MANUAL)
    source_id = Column(String, index=True)
    source_url = Column(String, index=True)
    botanical_name = Column(String)
    common_name = Column(String)
    image_url = Column(String)
    images = Column(JSONDocument, comment="Ordered list of image URLs")
    product_metadata = Column(
        "metadata", JSONDocument, comment="Scraped variants, specifications and other extras"
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    # Relationships
    category = relationship("Category", foreign_keys=[category_id])
    categories = relationship("Category", secondary=product_categories, backref="linked_products")
    content = relationship(
        "ProductContent", back_populates="product", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', slug='{self.slug}')>"


class ProductContent(Base):
    """Long-form editorial content, one row per product"""

    __tablename__ = "product_contents"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    detailed_description = Column(Text)
    growing_requirements = Column(Text)
    care_instructions = Column(Text)
    uses = Column(Text)
    benefits = Column(Text)
    last_updated_at = Column(DateTime(timezone=True), default=utcnow)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    product = relationship("Product", back_populates="content")

    def __repr__(self):
        return f"<ProductContent(product_id={self.product_id})>"
