# nursery/services/category_repair_service.py
"""
Batch jobs that heal category references on products.

Each job is safe to re-run: it only writes where the stored data differs from
what it derives, and a product that fails is logged and skipped.
"""
from dataclasses import dataclass, field
from typing import Dict, List
import logging

from sqlalchemy import update

from nursery.core.categories import (
    MAIN_CATEGORIES,
    UNCATEGORIZED,
    category_slug,
    derive_category_name,
    normalize_category_name,
    source_url_segments,
)
from nursery.db.models.associations import product_categories
from nursery.db.models.category import Category
from nursery.db.models.product import Product
from nursery.db.repositories.category_repository import CategoryRepository
from nursery.db.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

UNCATEGORIZED_DESCRIPTION = "Products without a specific category"


def default_description(name: str) -> str:
    return f"Browse our selection of {name.lower()}"


@dataclass
class RepairResult:
    processed: int = 0
    updated: int = 0
    unchanged: int = 0
    categories_created: int = 0
    skipped_no_url: int = 0
    skipped_unparsable: int = 0
    errors: int = 0
    changes: Dict[str, int] = field(default_factory=dict)


@dataclass
class OrphanResult:
    orphaned: int = 0
    reassigned: int = 0
    target_category: str = UNCATEGORIZED


@dataclass
class MergeResult:
    duplicates_found: int = 0
    products_moved: int = 0
    links_moved: int = 0
    merged: List[str] = field(default_factory=list)


class CategoryRepairService:
    def __init__(self, db_session):
        self.db_session = db_session
        self.category_repo = CategoryRepository(db_session)
        self.product_repo = ProductRepository(db_session)

    def _category_for(self, name: str, result: RepairResult, dry_run: bool, pending: Dict[str, Category]) -> Category:
        category = self.category_repo.get_by_name(name) or pending.get(name)
        if category:
            return category
        result.categories_created += 1
        if dry_run:
            pending[name] = Category(name=name, slug=category_slug(name))
            return pending[name]
        logger.info(f"Creating category {name}")
        return self.category_repo.get_or_create(name, category_slug(name), default_description(name))

    def repair_from_source_urls(self, limit: int = None, dry_run: bool = False) -> RepairResult:
        """
        Re-derive each product's category from the first path segment of its
        source URL and update category_id where it differs.
        """
        result = RepairResult()
        pending: Dict[str, Category] = {}

        for product in self.product_repo.list_for_repair(limit=limit):
            if not (product.source_url or "").strip():
                result.skipped_no_url += 1
                continue
            result.processed += 1
            try:
                if not source_url_segments(product.source_url):
                    result.skipped_unparsable += 1
                    continue
                name = derive_category_name(product.source_url)
                if not name:
                    result.skipped_unparsable += 1
                    continue

                category = self._category_for(name, result, dry_run, pending)
                if category.id is not None and product.category_id == category.id:
                    result.unchanged += 1
                    continue

                result.updated += 1
                result.changes[name] = result.changes.get(name, 0) + 1
                if not dry_run:
                    product.category_id = category.id
                    self.db_session.commit()
            except Exception as e:
                self.db_session.rollback()
                result.errors += 1
                logger.error(f"Error repairing category of product {product.id}: {e}")

        logger.info(
            f"Category repair: {result.updated} updated, {result.unchanged} unchanged, "
            f"{result.categories_created} categories created, {result.errors} errors"
        )
        return result

    def fix_orphaned_products(self) -> OrphanResult:
        """Point products whose category no longer exists at the Uncategorized category"""
        result = OrphanResult()
        orphans = self.product_repo.list_orphaned()
        result.orphaned = len(orphans)
        if not orphans:
            return result

        target = self.category_repo.get_or_create(
            UNCATEGORIZED, category_slug(UNCATEGORIZED), UNCATEGORIZED_DESCRIPTION
        )
        for product in orphans:
            try:
                product.category_id = target.id
                self.db_session.commit()
                result.reassigned += 1
            except Exception as e:
                self.db_session.rollback()
                logger.error(f"Error reassigning orphaned product {product.id}: {e}")
        return result

    def merge_duplicate_categories(self) -> MergeResult:
        """
        Move references from categories whose name only differs in spelling
        ('Succulents and Cacti' vs 'Succulents & Cacti') onto the main category.
        The duplicate rows themselves are kept.
        """
        result = MergeResult()
        mains = {
            normalize_category_name(category.name): category
            for category in self.category_repo.list_top_level(list(MAIN_CATEGORIES))
        }

        for category in self.category_repo.list():
            target = mains.get(normalize_category_name(category.name))
            if target is None or target.id == category.id or category.name in MAIN_CATEGORIES:
                continue
            result.duplicates_found += 1
            try:
                moved = self.db_session.execute(
                    update(Product)
                    .where(Product.category_id == category.id)
                    .values(category_id=target.id)
                ).rowcount
                result.products_moved += moved
                result.links_moved += self._move_links(category, target)
                self.db_session.commit()
                result.merged.append(f"{category.name} -> {target.name}")
            except Exception as e:
                self.db_session.rollback()
                logger.error(f"Error merging category {category.name}: {e}")
        return result

    def _move_links(self, source: Category, target: Category) -> int:
        already_linked = {
            row.product_id
            for row in self.db_session.execute(
                product_categories.select().where(product_categories.c.category_id == target.id)
            )
        }
        linked = [
            row.product_id
            for row in self.db_session.execute(
                product_categories.select().where(product_categories.c.category_id == source.id)
            )
        ]
        self.db_session.execute(
            product_categories.delete().where(product_categories.c.category_id == source.id)
        )
        to_add = [product_id for product_id in linked if product_id not in already_linked]
        if to_add:
            self.db_session.execute(
                product_categories.insert(),
                [{"product_id": product_id, "category_id": target.id} for product_id in to_add],
            )
        return len(linked)

    def ensure_main_categories(self) -> List[str]:
        """Create any missing main category; returns the names created"""
        created = []
        for name in MAIN_CATEGORIES:
            if self.category_repo.get_by_name(name):
                continue
            self.category_repo.get_or_create(name, category_slug(name), default_description(name))
            created.append(name)
        if created:
            self.db_session.commit()
            logger.info(f"Created main categories: {', '.join(created)}")
        return created

    def category_breakdown(self) -> Dict[str, int]:
        """Products per category name, largest first"""
        return self.category_repo.product_counts_by_name()
