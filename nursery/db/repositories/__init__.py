from nursery.db.repositories.category_repository import CategoryRepository
from nursery.db.repositories.product_repository import ProductRepository
from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository
