# nursery/services/import_job_service.py
from typing import Optional
from uuid import UUID
import logging
from nursery.core.errors import NotFoundError, ServiceUnavailableError
from nursery.db.models.enums import ScrapingJobStatus
from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository
from nursery.importers.base import ImportOptions, ImportService
from nursery.importers.runner import JobRunner
from nursery.schemas.import_job import ImportJobCreate, ScrapingJobList, ScrapingJobResponse

logger = logging.getLogger(__name__)


class ImportJobService:
    """
    Orchestrates catalog import jobs: creates the job row synchronously,
    hands execution to the job runner and answers status/stop requests.
    """

    def __init__(self, db_session, import_service: ImportService, job_runner: JobRunner):
        self.db_session = db_session
        self.job_repo = ScrapingJobRepository(db_session)
        self.import_service = import_service
        self.job_runner = job_runner

    def start_job(self, request: ImportJobCreate) -> UUID:
        """
        Create a PENDING job and submit it. Returns as soon as the job row
        exists; the outcome is only visible through the job's status.
        """
        if not self.import_service.is_available:
            raise ServiceUnavailableError(
                "Data import service is not available in this environment",
                details="Scraping functionality is not enabled for this deployment",
            )

        options = ImportOptions.from_request(request)
        job_id = self.import_service.create_job(options)
        try:
            self.job_runner.submit(job_id, options)
        except Exception as e:
            logger.error(f"Could not dispatch import job {job_id}: {e}", exc_info=True)
            job = self.job_repo.get_by_id(job_id)
            if job is not None:
                self.job_repo.append_error(job, {"message": f"Dispatch failed: {e}"})
                self.job_repo.mark_finished(job, ScrapingJobStatus.FAILED)
        return job_id

    def list_jobs(
        self, status: Optional[ScrapingJobStatus] = None, offset: int = 0, limit: int = 50
    ) -> ScrapingJobList:
        """Newest jobs first; total is a count over the same status filter"""
        jobs = self.job_repo.list(status=status, skip=offset, limit=limit)
        total = self.job_repo.count(status=status)
        return ScrapingJobList(
            jobs=[ScrapingJobResponse.model_validate(job) for job in jobs],
            total=total,
        )

    def get_job(self, job_id: UUID) -> ScrapingJobResponse:
        job = self.job_repo.get_by_id(job_id)
        if not job:
            raise NotFoundError("Job not found")
        return ScrapingJobResponse.model_validate(job)

    def stop_job(self, job_id: UUID) -> ScrapingJobResponse:
        """
        Mark the job FAILED with the stop marker, then signal the running work.
        The marker is written first so a worker that checks it sees the stop
        even when the runner cannot reach it.
        """
        job = self.job_repo.get_by_id(job_id)
        if not job:
            raise NotFoundError("Job not found")

        job = self.job_repo.mark_stopped(job)
        signalled = self.job_runner.cancel(job_id)
        logger.info(f"Stopped import job {job_id} (runner signalled: {signalled})")
        return ScrapingJobResponse.model_validate(job)
