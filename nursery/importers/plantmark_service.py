# nursery/importers/plantmark_service.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import requests
from sqlalchemy.orm import Session

from nursery.core.categories import (
    canonical_category_name,
    category_slug,
    derive_category_name,
    generate_slug,
    looks_like_uuid,
)
from nursery.core.logging import get_logger
from nursery.db.base import Database
from nursery.db.models.category import Category
from nursery.db.models.enums import ProductSource, ProductType, ScrapingJobStatus
from nursery.db.models.product import Product
from nursery.db.models.scraping_job import ScrapingJob
from nursery.db.repositories.category_repository import CategoryRepository
from nursery.db.repositories.product_repository import ProductRepository
from nursery.db.repositories.scraping_job_repository import MAX_STORED_ERRORS, ScrapingJobRepository
from nursery.importers.base import (
    AnyCancellationToken,
    CancellationToken,
    ImportOptions,
    ImportResult,
    ImportService,
    JobCancelled,
    JobStatusCancellationToken,
    PlantmarkAPIError,
)
from nursery.importers.plantmark_client import PlantmarkApiClient
from nursery.importers.plantmark_scraper import PlantmarkScraper
from nursery.importers.validation import PlantmarkProduct, normalize_product, validate_product
from nursery.schemas.import_job import ScrapingJobResponse

logger = get_logger(__name__)

PROGRESS_EVERY = 10
MAX_EMPTY_PAGES = 2
# Retail price is this multiple of the cheapest wholesale variant
VARIANT_PRICE_MULTIPLIER = 2

# Product columns refreshed from the partner site when they changed
MERGED_FIELDS = (
    "name",
    "description",
    "price",
    "image_url",
    "images",
    "botanical_name",
    "common_name",
    "availability",
    "source_url",
)

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def should_update(new_value, existing_value) -> bool:
    """Take new values that are present and either differ or fill a blank"""
    if new_value is None:
        return False
    if existing_value is None:
        return True
    return new_value != existing_value


def merge_metadata(existing: Optional[Dict[str, Any]], new: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Specifications are merged key by key, variants are replaced wholesale and
    other keys are overwritten when the new value is not None.
    """
    merged = dict(existing or {})
    if not new:
        return merged
    if merged.get("specifications") and new.get("specifications"):
        merged["specifications"] = {**merged["specifications"], **new["specifications"]}
    elif new.get("specifications"):
        merged["specifications"] = new["specifications"]
    if new.get("variants"):
        merged["variants"] = new["variants"]
    for key, value in new.items():
        if key in ("specifications", "variants"):
            continue
        if value is not None:
            merged[key] = value
    return merged


def calculate_price(product: PlantmarkProduct) -> float:
    """Twice the cheapest priced variant, else the listed price, else 0"""
    prices = sorted(
        float(variant["price"])
        for variant in (product.variants or [])
        if isinstance(variant.get("price"), (int, float)) and variant["price"] > 0
    )
    if prices:
        return prices[0] * VARIANT_PRICE_MULTIPLIER
    return product.price or 0


def product_slug(product: PlantmarkProduct) -> str:
    slug = (product.slug or "").strip() or generate_slug(product.name)
    if looks_like_uuid(slug):
        slug = generate_slug(product.name)
    return slug


def category_names_for(product: PlantmarkProduct) -> List[str]:
    """Categories listed on the product, else the one implied by its URL"""
    if product.categories:
        names = [name for name in product.categories if name and name.strip()]
        if names:
            return names
    if product.category and product.category.strip():
        return [product.category]
    derived = derive_category_name(product.source_url)
    return [derived] if derived else []


def build_metadata(product: PlantmarkProduct) -> Dict[str, Any]:
    metadata: Dict[str, Any] = dict(product.metadata or {})
    if product.specifications:
        metadata["specifications"] = product.specifications
    if product.care_instructions:
        metadata["careInstructions"] = product.care_instructions
    if product.planting_instructions:
        metadata["plantingInstructions"] = product.planting_instructions
    if product.variants:
        metadata["variants"] = product.variants
    return metadata


def _without_scraped_at(metadata: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in metadata.items() if key != "scrapedAt"}


class PlantmarkImportService(ImportService):
    """
    Imports the partner nursery's catalog, from its JSON API when one is
    configured and by scraping the plant-finder listing otherwise.
    """

    def __init__(
        self,
        database: Database,
        client: PlantmarkApiClient,
        scraper: PlantmarkScraper,
        scrape_details: bool = True,
    ):
        self.database = database
        self.client = client
        self.scraper = scraper
        self.scrape_details = scrape_details

    @classmethod
    def from_settings(cls, settings, database: Database) -> "PlantmarkImportService":
        return cls(
            database=database,
            client=PlantmarkApiClient.from_settings(settings),
            scraper=PlantmarkScraper.from_settings(settings),
            scrape_details=settings.PLANTMARK_SCRAPE_DETAILS,
        )

    def create_job(self, options: ImportOptions) -> UUID:
        with self.database.session() as session:
            job = ScrapingJobRepository(session).create(options.job_type, options.to_metadata())
            logger.info(f"Created import job {job.id} ({options.job_type.value}, useApi={options.use_api})")
            return job.id

    def get_status(self, job_id: UUID) -> Optional[ScrapingJobResponse]:
        with self.database.session() as session:
            job = ScrapingJobRepository(session).get_by_id(job_id)
            return ScrapingJobResponse.model_validate(job) if job else None

    # Gathering

    def _collect_from_api(self, options: ImportOptions, token: CancellationToken) -> List[Dict[str, Any]]:
        products: List[Dict[str, Any]] = []
        page = 1
        has_more = True
        while has_more:
            token.raise_if_cancelled()
            response = self.client.get_products(page=page, category=options.category)
            products.extend(response.get("products") or [])
            has_more = bool(response.get("hasMore"))
            page += 1
            if options.max_products and len(products) >= options.max_products:
                break
        return products[: options.max_products] if options.max_products else products

    def _collect_from_scraper(self, options: ImportOptions, token: CancellationToken) -> List[Dict[str, Any]]:
        products: List[Dict[str, Any]] = []
        page = 1
        has_more = True
        empty_pages = 0
        while has_more and empty_pages < MAX_EMPTY_PAGES:
            token.raise_if_cancelled()
            page_products, has_more = self.scraper.scrape_products(page=page, category=options.category)
            if page_products:
                empty_pages = 0
                products.extend(page_products)
            else:
                empty_pages += 1
            if options.max_products and len(products) >= options.max_products:
                break
            # a first page without a next link may be an infinite-scroll page; try page 2 once
            if page == 1 and not has_more and products:
                has_more = True
            page += 1
        return products[: options.max_products] if options.max_products else products

    def collect_products(self, options: ImportOptions, token: CancellationToken) -> Tuple[List[Dict[str, Any]], bool]:
        """Raw product records and whether they came from the scraper"""
        if options.use_api:
            try:
                return self._collect_from_api(options, token), False
            except (PlantmarkAPIError, requests.RequestException) as e:
                logger.warning(f"API import failed, falling back to scraping: {e}")
        return self._collect_from_scraper(options, token), True

    # Per-product import

    def _with_details(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay the product page's fields on a listing record"""
        source_url = raw.get("sourceUrl")
        if not source_url:
            return raw
        try:
            detail = self.scraper.scrape_product_detail(source_url)
        except requests.RequestException as e:
            logger.warning(f"Could not fetch product page {source_url}, using listing data: {e}")
            return raw
        if not detail:
            return raw
        detail.pop("id", None)
        return {**raw, **{key: value for key, value in detail.items() if value is not None}}

    def _find_or_create_category(self, categories: CategoryRepository, label: str) -> Category:
        name = canonical_category_name(label)
        return categories.get_or_create(name, category_slug(name))

    def import_product(
        self, session: Session, raw: Dict[str, Any], options: ImportOptions, from_scraper: bool = False
    ) -> str:
        """Create or merge one product; returns CREATED, UPDATED or SKIPPED"""
        product = normalize_product(validate_product(raw))

        names = category_names_for(product)
        if not names:
            raise ValueError(f'Product "{product.name}" has no category. URL: {product.source_url}')

        category_repo = CategoryRepository(session)
        product_repo = ProductRepository(session)
        categories = [self._find_or_create_category(category_repo, name) for name in names]
        primary = categories[0]

        source_id = product.source_id or product.id
        slug = product_slug(product)
        metadata = build_metadata(product)
        fields = {
            "name": product.name,
            "slug": slug,
            "description": product.description,
            "product_type": ProductType.PHYSICAL,
            "price": calculate_price(product),
            "availability": product.availability,
            "category_id": primary.id,
            "source": ProductSource.SCRAPED if from_scraper else ProductSource.API,
            "source_id": source_id,
            "source_url": product.source_url,
            "botanical_name": product.botanical_name,
            "common_name": product.common_name,
            "image_url": product.image_url,
            "images": product.images or None,
        }

        existing = product_repo.find_for_import(source_id=source_id, source_url=product.source_url, slug=slug)
        if existing is None:
            fields["product_metadata"] = {**metadata, "scrapedAt": _now_iso()}
            if fields["availability"] is None:
                fields.pop("availability")
            new_product = Product(**fields)
            session.add(new_product)
            session.flush()
            product_repo.set_categories(new_product, categories)
            session.commit()
            return CREATED

        changed = self._merge_into(product_repo, existing, fields, metadata)
        product_repo.set_categories(existing, categories)
        session.commit()
        return UPDATED if changed else SKIPPED

    def _merge_into(
        self,
        product_repo: ProductRepository,
        existing: Product,
        fields: Dict[str, Any],
        metadata: Dict[str, Any],
    ) -> bool:
        changed = False
        for name in MERGED_FIELDS:
            if should_update(fields[name], getattr(existing, name)):
                setattr(existing, name, fields[name])
                changed = True

        current_metadata = existing.product_metadata or {}
        merged = merge_metadata(current_metadata, metadata)
        if _without_scraped_at(merged) != _without_scraped_at(current_metadata):
            merged["scrapedAt"] = _now_iso()
            existing.product_metadata = merged
            changed = True

        if existing.category_id != fields["category_id"]:
            existing.category_id = fields["category_id"]
            changed = True

        current_slug = (existing.slug or "").strip()
        new_slug = fields["slug"]
        if (not current_slug or looks_like_uuid(current_slug)) and new_slug != current_slug:
            if product_repo.slug_taken(new_slug, exclude_id=existing.id):
                new_slug = f"{new_slug}-{str(existing.id)[:8]}"
            existing.slug = new_slug
            changed = True
        return changed

    # Job execution

    def _save_progress(self, session: Session, jobs: ScrapingJobRepository, job: ScrapingJob, result: ImportResult) -> None:
        """Write counters without clobbering a concurrent stop"""
        try:
            session.refresh(job)
            job.products_processed = result.processed
            job.products_created = result.created
            job.products_updated = result.updated
            job.errors = result.errors[-MAX_STORED_ERRORS:]
            jobs.merge_metadata(job, {"skipped": result.skipped})
            session.commit()
        except Exception as e:
            session.rollback()
            logger.warning(f"Could not update progress of job {job.id}: {e}")

    def run_job(self, job_id: UUID, options: ImportOptions, cancel_token: CancellationToken) -> ImportResult:
        # a stop written to the job row by another process must end the run too
        if not isinstance(cancel_token, JobStatusCancellationToken):
            cancel_token = AnyCancellationToken(cancel_token, JobStatusCancellationToken(self.database, job_id))
        result = ImportResult()
        with self.database.session() as session:
            jobs = ScrapingJobRepository(session)
            job = jobs.get_by_id(job_id)
            if job is None:
                raise ValueError(f"Job {job_id} not found")
            if job.was_stopped or cancel_token.is_cancelled():
                logger.info(f"Job {job_id} was stopped before it started")
                if not job.was_stopped:
                    jobs.mark_stopped(job)
                result.cancelled = True
                return result

            jobs.mark_running(job)
            logger.info(f"Import job {job_id} running")

            try:
                products, from_scraper = self.collect_products(options, cancel_token)
                logger.info(f"Job {job_id}: {len(products)} products to import")

                for raw in products:
                    cancel_token.raise_if_cancelled()
                    errors_before = len(result.errors)
                    try:
                        record = self._with_details(raw) if from_scraper and self.scrape_details else raw
                        outcome = self.import_product(session, record, options, from_scraper=from_scraper)
                        if outcome == CREATED:
                            result.created += 1
                        elif outcome == UPDATED:
                            result.updated += 1
                        else:
                            result.skipped += 1
                    except Exception as e:
                        session.rollback()
                        logger.warning(f"Job {job_id}: failed to import {raw.get('sourceUrl') or raw.get('id')}: {e}")
                        result.errors.append(
                            {
                                "productId": raw.get("id"),
                                "url": raw.get("sourceUrl"),
                                "message": str(e),
                                "timestamp": _now_iso(),
                            }
                        )
                    result.processed += 1

                    if result.processed % PROGRESS_EVERY == 0 or len(result.errors) > errors_before:
                        self._save_progress(session, jobs, job, result)

                    if options.max_products and result.processed >= options.max_products:
                        break

                self._save_progress(session, jobs, job, result)
                if not jobs.complete_unless_stopped(job):
                    raise JobCancelled()
                logger.info(
                    f"Import job {job_id} completed: {result.created} created, "
                    f"{result.updated} updated, {result.skipped} unchanged, {len(result.errors)} errors"
                )
                return result

            except JobCancelled:
                session.rollback()
                self._save_progress(session, jobs, job, result)
                if not job.was_stopped:
                    jobs.mark_stopped(job)
                result.cancelled = True
                logger.info(f"Import job {job_id} stopped after {result.processed} products")
                return result

            except Exception as e:
                session.rollback()
                session.refresh(job)
                if not job.was_stopped:
                    job.errors = result.errors[-MAX_STORED_ERRORS:]
                    jobs.append_error(job, {"message": str(e), "timestamp": _now_iso()})
                    jobs.mark_finished(job, ScrapingJobStatus.FAILED)
                logger.error(f"Import job {job_id} failed: {e}", exc_info=True)
                raise
