# nursery/db/models/__init__.py
from nursery.db.models.category import Category
from nursery.db.models.product import Product, ProductContent
from nursery.db.models.scraping_job import ScrapingJob
from nursery.db.models.associations import product_categories
from nursery.db.models.enums import (
    AvailabilityStatus,
    ProductSource,
    ProductType,
    ScrapingJobStatus,
    ScrapingJobType,
)
