from nursery.schemas.common import PaginationInfo
from nursery.schemas.category import (
    CategoryInDB,
    CategoryListItem,
    CategoryDetail,
)
from nursery.schemas.product import (
    ProductCreate,
    ProductContentUpsert,
    ProductContentResponse,
    ProductResponse,
    ProductDetail,
    ProductPage,
)
from nursery.schemas.import_job import (
    ImportJobCreate,
    ImportJobStart,
    ScrapingJobResponse,
    ScrapingJobList,
)
