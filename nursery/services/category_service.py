# nursery/services/category_service.py
from typing import Dict, List, Optional
from uuid import UUID
import logging
from nursery.core.categories import MAIN_CATEGORIES, is_main_category
from nursery.core.errors import NotFoundError
from nursery.db.models.category import Category
from nursery.db.repositories.category_repository import CategoryRepository
from nursery.schemas.category import (
    CategoryCount,
    CategoryDetail,
    CategoryInDB,
    CategoryListItem,
)
from nursery.schemas.product import ProductResponse

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for category-related business logic"""

    def __init__(self, db_session):
        self.category_repo = CategoryRepository(db_session)

    def _list_item(self, category: Category, product_count: Optional[int] = None) -> CategoryListItem:
        if product_count is None:
            product_count = self.category_repo.count_products(category.id)
        item = CategoryListItem.model_validate(category)
        item.children = [
            CategoryInDB.model_validate(child)
            for child in self.category_repo.list_children(category.id)
        ]
        item.count = CategoryCount(products=product_count)
        return item

    def list_categories(self, parent_id: Optional[UUID] = None) -> List[CategoryListItem]:
        """
        List categories for navigation.

        Without a parent, only main categories are returned, one per name: when
        the same name exists more than once the row holding the most products is
        kept, ties going to the oldest row.
        """
        if parent_id:
            return [self._list_item(child) for child in self.category_repo.list_children(parent_id)]

        chosen: Dict[str, tuple] = {}
        for category in self.category_repo.list_top_level(list(MAIN_CATEGORIES)):
            count = self.category_repo.count_products(category.id)
            current = chosen.get(category.name)
            if current is None or count > current[1]:
                chosen[category.name] = (category, count)

        if len(chosen) < len(MAIN_CATEGORIES):
            missing = sorted(set(MAIN_CATEGORIES) - set(chosen))
            logger.debug(f"Main categories missing from the database: {missing}")

        return [
            self._list_item(category, count)
            for category, count in sorted(chosen.values(), key=lambda pair: pair[0].name)
        ]

    def get_category_page(self, slug: str, limit: int = 20) -> CategoryDetail:
        """
        Category page payload. Subcategories and categories outside the main
        list are reported as not found even when they exist.
        """
        category = self.category_repo.get_by_slug(slug)
        if not category or category.parent_id is not None or not is_main_category(category.name):
            raise NotFoundError("Category not found")

        detail = CategoryDetail.model_validate(category)
        detail.parent = None
        detail.children = [
            CategoryInDB.model_validate(child)
            for child in self.category_repo.list_children(category.id)
        ]
        detail.products = [
            ProductResponse.model_validate(product)
            for product in self.category_repo.list_products(category.id, limit=limit)
        ]
        detail.count = CategoryCount(products=self.category_repo.count_products(category.id))
        return detail
