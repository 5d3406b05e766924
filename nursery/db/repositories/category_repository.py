# nursery/db/repositories/category_repository.py
from typing import List, Optional, Dict
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy import or_, func, select
from nursery.db.models.category import Category
from nursery.db.models.product import Product
from nursery.db.models.associations import product_categories


def category_membership(category_id: UUID):
    """
    Predicate selecting the products of a category: the legacy category_id
    pointer OR membership through the product_categories join table.
    """
    linked = select(product_categories.c.product_id).where(
        product_categories.c.category_id == category_id
    )
    return or_(Product.category_id == category_id, Product.id.in_(linked))


class CategoryRepository:
    """Repository for CRUD operations on Category model"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get_by_id(self, category_id: UUID) -> Optional[Category]:
        """Get category by ID"""
        return self.db_session.query(Category).filter(Category.id == category_id).first()

    def get_by_slug(self, slug: str) -> Optional[Category]:
        """Get category by slug"""
        return self.db_session.query(Category).filter(Category.slug == slug).first()

    def get_by_name(self, name: str) -> Optional[Category]:
        """Get category by name (case-insensitive), oldest first"""
        return (
            self.db_session.query(Category)
            .filter(func.lower(Category.name) == name.lower())
            .order_by(Category.created_at)
            .first()
        )

    def list(self) -> List[Category]:
        """List all categories ordered by name"""
        return self.db_session.query(Category).order_by(Category.name).all()

    def list_top_level(self, names: Optional[List[str]] = None) -> List[Category]:
        """List categories without a parent, optionally restricted to the given names"""
        query = self.db_session.query(Category).filter(Category.parent_id.is_(None))
        if names is not None:
            query = query.filter(Category.name.in_(names))
        return query.order_by(Category.name, Category.created_at).all()

    def list_children(self, parent_id: UUID) -> List[Category]:
        """List direct children of a category"""
        return (
            self.db_session.query(Category)
            .filter(Category.parent_id == parent_id)
            .order_by(Category.name)
            .all()
        )

    def count_products(self, category_id: UUID) -> int:
        """Count products in a category using the same predicate as list_products"""
        return (
            self.db_session.query(func.count(Product.id))
            .filter(category_membership(category_id))
            .scalar()
        )

    def list_products(self, category_id: UUID, limit: int = 20) -> List[Product]:
        """Newest products of a category; each product appears once"""
        return (
            self.db_session.query(Product)
            .filter(category_membership(category_id))
            .order_by(Product.created_at.desc(), Product.id)
            .limit(limit)
            .all()
        )

    def product_counts_by_name(self) -> Dict[str, int]:
        """Products per category name through the legacy pointer"""
        rows = (
            self.db_session.query(Category.name, func.count(Product.id))
            .join(Product, Product.category_id == Category.id)
            .group_by(Category.name)
            .order_by(func.count(Product.id).desc())
            .all()
        )
        return {name: count for name, count in rows}

    def get_or_create(self, name: str, slug: str, description: Optional[str] = None) -> Category:
        """
        Find a category by name or slug, creating a top-level one when absent.
        Does not commit; the caller owns the transaction.
        """
        category = (
            self.db_session.query(Category)
            .filter(or_(Category.name == name, Category.slug == slug))
            .order_by(Category.created_at)
            .first()
        )
        if category:
            return category

        category = Category(name=name, slug=slug, description=description)
        self.db_session.add(category)
        self.db_session.flush()
        return category
