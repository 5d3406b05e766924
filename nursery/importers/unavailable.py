# nursery/importers/unavailable.py
from typing import Optional
from uuid import UUID

from nursery.core.errors import ServiceUnavailableError
from nursery.db.base import Database
from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository
from nursery.importers.base import CancellationToken, ImportOptions, ImportResult, ImportService
from nursery.schemas.import_job import ScrapingJobResponse


class UnavailableImportService(ImportService):
    """Stands in when importing is switched off; existing jobs stay readable"""

    def __init__(self, database: Database, reason: str = "Scraping functionality is not enabled in this environment"):
        self.database = database
        self.reason = reason

    @property
    def is_available(self) -> bool:
        return False

    def _unavailable(self) -> ServiceUnavailableError:
        return ServiceUnavailableError(
            "Data import service is not available in this environment", details=self.reason
        )

    def create_job(self, options: ImportOptions) -> UUID:
        raise self._unavailable()

    def run_job(self, job_id: UUID, options: ImportOptions, cancel_token: CancellationToken) -> ImportResult:
        raise self._unavailable()

    def get_status(self, job_id: UUID) -> Optional[ScrapingJobResponse]:
        with self.database.session() as session:
            job = ScrapingJobRepository(session).get_by_id(job_id)
            return ScrapingJobResponse.model_validate(job) if job else None
