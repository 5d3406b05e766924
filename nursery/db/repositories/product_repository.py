# nursery/db/repositories/product_repository.py
from typing import List, Optional, Tuple, Dict, Any
from uuid import UUID
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_, func
from nursery.db.models.product import Product, ProductContent
from nursery.db.models.category import Category
from nursery.db.models.enums import ProductSource, ProductType
from nursery.db.models.types import utcnow


def parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class ProductRepository:
    """Repository for CRUD operations on Product model"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get_by_id_or_slug(self, id_or_slug: str) -> Optional[Product]:
        """Resolve a path parameter that is either a product id or a slug; an id match wins"""
        product_id = parse_uuid(id_or_slug)
        if product_id:
            product = (
                self.db_session.query(Product)
                .options(selectinload(Product.category), selectinload(Product.content))
                .filter(Product.id == product_id)
                .first()
            )
            if product:
                return product
        return (
            self.db_session.query(Product)
            .options(selectinload(Product.category), selectinload(Product.content))
            .filter(Product.slug == id_or_slug)
            .order_by(Product.created_at)
            .first()
        )

    def _filtered(
        self,
        category_id: Optional[UUID] = None,
        product_type: Optional[ProductType] = None,
        source: Optional[ProductSource] = None,
    ):
        query = self.db_session.query(Product)
        if category_id:
            query = query.filter(Product.category_id == category_id)
        if product_type:
            query = query.filter(Product.product_type == product_type)
        if source:
            query = query.filter(Product.source == source)
        return query

    def list_filtered(
        self,
        skip: int = 0,
        limit: int = 20,
        category_id: Optional[UUID] = None,
        product_type: Optional[ProductType] = None,
        source: Optional[ProductSource] = None,
    ) -> List[Product]:
        """Newest-first page of products matching the filters"""
        return (
            self._filtered(category_id, product_type, source)
            .options(selectinload(Product.category))
            .order_by(Product.created_at.desc(), Product.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_filtered(
        self,
        category_id: Optional[UUID] = None,
        product_type: Optional[ProductType] = None,
        source: Optional[ProductSource] = None,
    ) -> int:
        """Count products with the same filters as list_filtered"""
        return (
            self._filtered(category_id, product_type, source)
            .with_entities(func.count(Product.id))
            .scalar()
        )

    def list_related(self, product: Product, limit: int = 6) -> List[Product]:
        """Newest products sharing the product's category, excluding the product itself"""
        if not product.category_id:
            return []
        return (
            self.db_session.query(Product)
            .options(selectinload(Product.category))
            .filter(Product.category_id == product.category_id, Product.id != product.id)
            .order_by(Product.created_at.desc(), Product.id)
            .limit(limit)
            .all()
        )

    def list_for_repair(self, limit: Optional[int] = None) -> List[Product]:
        """Oldest products first, with or without a source URL"""
        query = self.db_session.query(Product).order_by(Product.created_at, Product.id)
        if limit:
            query = query.limit(limit)
        return query.all()

    def list_orphaned(self) -> List[Product]:
        """Products whose category_id points at no category row"""
        return (
            self.db_session.query(Product)
            .outerjoin(Category, Product.category_id == Category.id)
            .filter(Product.category_id.isnot(None), Category.id.is_(None))
            .all()
        )

    def find_for_import(
        self,
        source_id: Optional[str] = None,
        source_url: Optional[str] = None,
        slug: Optional[str] = None,
    ) -> Optional[Product]:
        """Existing product matching an imported record by sourceId, sourceUrl or slug"""
        conditions = []
        if source_id:
            conditions.append(Product.source_id == source_id)
        if source_url:
            conditions.append(Product.source_url == source_url)
        if slug:
            conditions.append(Product.slug == slug)
        if not conditions:
            return None
        return (
            self.db_session.query(Product)
            .filter(or_(*conditions))
            .order_by(Product.created_at)
            .first()
        )

    def slug_taken(self, slug: str, exclude_id: Optional[UUID] = None) -> bool:
        query = self.db_session.query(Product.id).filter(Product.slug == slug)
        if exclude_id:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    def create(self, product_data: Dict[str, Any]) -> Product:
        """Create a new product"""
        db_product = Product(**product_data)
        self.db_session.add(db_product)
        self.db_session.commit()
        self.db_session.refresh(db_product)
        return db_product

    def set_categories(self, product: Product, categories: List[Category]) -> None:
        """Replace the product's join-table memberships"""
        unique = {category.id: category for category in categories}
        product.categories = list(unique.values())

    def get_content(self, product_id: UUID) -> Optional[ProductContent]:
        return (
            self.db_session.query(ProductContent)
            .filter(ProductContent.product_id == product_id)
            .first()
        )

    def upsert_content(self, product_id: UUID, content_data: Dict[str, Any]) -> ProductContent:
        """Create or update the content row keyed by product id"""
        content = self.get_content(product_id)
        if content is None:
            content = ProductContent(product_id=product_id)
            self.db_session.add(content)

        for key, value in content_data.items():
            setattr(content, key, value)
        content.last_updated_at = utcnow()

        self.db_session.commit()
        self.db_session.refresh(content)
        return content
