# nursery/services/product_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging
import math
from nursery.core.errors import NotFoundError
from nursery.db.models.enums import ProductSource, ProductType
from nursery.db.models.product import Product
from nursery.db.repositories.category_repository import CategoryRepository
from nursery.db.repositories.product_repository import ProductRepository
from nursery.schemas.common import PaginationInfo
from nursery.schemas.product import (
    ProductContentResponse,
    ProductContentUpsert,
    ProductCreate,
    ProductDetail,
    ProductPage,
    ProductResponse,
)

logger = logging.getLogger(__name__)

RELATED_PRODUCTS_LIMIT = 6


class ProductService:
    """Service for product-related business logic"""

    def __init__(self, db_session):
        self.db_session = db_session
        self.product_repo = ProductRepository(db_session)
        self.category_repo = CategoryRepository(db_session)

    def _require(self, id_or_slug: str) -> Product:
        product = self.product_repo.get_by_id_or_slug(id_or_slug)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def list_products(
        self,
        page: int = 1,
        limit: int = 20,
        category_id: Optional[UUID] = None,
        product_type: Optional[ProductType] = None,
    ) -> ProductPage:
        """Page-style listing; total comes from a count over the same filters"""
        skip = (page - 1) * limit
        products = self.product_repo.list_filtered(
            skip=skip, limit=limit, category_id=category_id, product_type=product_type
        )
        total = self.product_repo.count_filtered(category_id=category_id, product_type=product_type)
        return ProductPage(
            data=[ProductResponse.model_validate(product) for product in products],
            pagination=PaginationInfo(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit) if limit else 0,
            ),
        )

    def admin_list_products(
        self, offset: int = 0, limit: int = 50, source: Optional[ProductSource] = None
    ) -> Dict[str, Any]:
        """Offset-style listing used by the admin screens"""
        products = self.product_repo.list_filtered(skip=offset, limit=limit, source=source)
        total = self.product_repo.count_filtered(source=source)
        return {
            "products": [ProductResponse.model_validate(product) for product in products],
            "total": total,
        }

    def get_product(self, id_or_slug: str) -> ProductDetail:
        return ProductDetail.model_validate(self._require(id_or_slug))

    def get_related_products(self, id_or_slug: str) -> List[ProductResponse]:
        product = self._require(id_or_slug)
        related = self.product_repo.list_related(product, limit=RELATED_PRODUCTS_LIMIT)
        return [ProductResponse.model_validate(item) for item in related]

    def create_product(self, product_data: ProductCreate) -> ProductResponse:
        """Create a product by hand; the category must already exist"""
        category = self.category_repo.get_by_id(product_data.category_id)
        if not category:
            raise ValueError(f"Category {product_data.category_id} does not exist")

        product = self.product_repo.create(product_data.to_model_fields())
        self.product_repo.set_categories(product, [category])
        self.db_session.commit()
        self.db_session.refresh(product)
        logger.info(f"Created product {product.id} ({product.slug})")
        return ProductResponse.model_validate(product)

    def get_content(self, id_or_slug: str) -> Optional[ProductContentResponse]:
        product = self._require(id_or_slug)
        content = self.product_repo.get_content(product.id)
        if not content:
            return None
        return ProductContentResponse.model_validate(content)

    def upsert_content(self, id_or_slug: str, content_data: ProductContentUpsert) -> ProductContentResponse:
        product = self._require(id_or_slug)
        content = self.product_repo.upsert_content(
            product.id, content_data.model_dump(exclude_unset=True)
        )
        return ProductContentResponse.model_validate(content)
