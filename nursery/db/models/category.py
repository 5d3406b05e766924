# nursery/db/models/category.py
from sqlalchemy import Column, String, Text, ForeignKey, Uuid, DateTime, func
from sqlalchemy.orm import relationship
from nursery.db.base import Base
from nursery.db.models.types import utcnow
import uuid


class Category(Base):
    """
    Catalog category. Top-level rows (parent_id is NULL) named in the
    main-category allow-list are the only ones shown publicly.
    """

    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text)
    image = Column(String)
    parent_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
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
    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent", order_by="Category.name")

    def __repr__(self):
        return f"<Category(id={self.id}, slug='{self.slug}')>"
