# nursery/schemas/import_job.py
from pydantic import AliasChoices, Field, PositiveInt
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime

from nursery.db.models.enums import ScrapingJobStatus, ScrapingJobType
from nursery.schemas.common import RequestModel, ResponseModel


class ImportJobCreate(RequestModel):
    """Body of POST /api/admin/import-jobs"""

    job_type: ScrapingJobType = ScrapingJobType.FULL
    use_api: bool = True
    category: Optional[str] = None
    max_products: Optional[PositiveInt] = None


class ImportJobStart(ImportJobCreate):
    """Dashboard variant; scraping is the default there"""

    use_api: bool = False


class ScrapingJobResponse(ResponseModel):
    id: UUID
    job_type: ScrapingJobType
    status: ScrapingJobStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    products_processed: int = 0
    products_created: int = 0
    products_updated: int = 0
    errors: List[Dict[str, Any]] = []
    job_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("job_metadata", "metadata"),
        serialization_alias="metadata",
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ScrapingJobList(ResponseModel):
    jobs: List[ScrapingJobResponse]
    total: int
