# nursery/db/repositories/scraping_job_repository.py
from typing import List, Optional, Dict, Any
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy import func
from nursery.db.models.scraping_job import ScrapingJob
from nursery.db.models.enums import ScrapingJobStatus, ScrapingJobType
from nursery.db.models.types import utcnow

# Only the most recent errors are kept on the job row
MAX_STORED_ERRORS = 50


class ScrapingJobRepository:
    """Repository for the scraping_jobs table"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get_by_id(self, job_id: UUID) -> Optional[ScrapingJob]:
        return self.db_session.query(ScrapingJob).filter(ScrapingJob.id == job_id).first()

    def create(self, job_type: ScrapingJobType, metadata: Optional[Dict[str, Any]] = None) -> ScrapingJob:
        job = ScrapingJob(
            job_type=job_type,
            status=ScrapingJobStatus.PENDING,
            errors=[],
            job_metadata=metadata or {},
        )
        self.db_session.add(job)
        self.db_session.commit()
        self.db_session.refresh(job)
        return job

    def _filtered(self, status: Optional[ScrapingJobStatus] = None):
        query = self.db_session.query(ScrapingJob)
        if status:
            query = query.filter(ScrapingJob.status == status)
        return query

    def list(self, status: Optional[ScrapingJobStatus] = None, skip: int = 0, limit: int = 20) -> List[ScrapingJob]:
        """Newest jobs first"""
        return (
            self._filtered(status)
            .order_by(ScrapingJob.created_at.desc(), ScrapingJob.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self, status: Optional[ScrapingJobStatus] = None) -> int:
        return self._filtered(status).with_entities(func.count(ScrapingJob.id)).scalar()

    def merge_metadata(self, job: ScrapingJob, values: Dict[str, Any]) -> None:
        """Reassign the JSON document so the change is flushed"""
        job.job_metadata = {**(job.job_metadata or {}), **values}

    def append_error(self, job: ScrapingJob, error: Dict[str, Any]) -> None:
        errors = list(job.errors or [])
        errors.append(error)
        job.errors = errors[-MAX_STORED_ERRORS:]

    def mark_running(self, job: ScrapingJob) -> ScrapingJob:
        job.status = ScrapingJobStatus.RUNNING
        job.started_at = utcnow()
        self.db_session.commit()
        self.db_session.refresh(job)
        return job

    def mark_finished(self, job: ScrapingJob, status: ScrapingJobStatus) -> ScrapingJob:
        job.status = status
        job.completed_at = utcnow()
        self.db_session.commit()
        self.db_session.refresh(job)
        return job

    def complete_unless_stopped(self, job: ScrapingJob) -> bool:
        """
        Move the job to COMPLETED in one conditional UPDATE so a stop committed
        concurrently is never overwritten. False when the job was already FAILED.
        """
        now = utcnow()
        updated = (
            self.db_session.query(ScrapingJob)
            .filter(ScrapingJob.id == job.id, ScrapingJob.status != ScrapingJobStatus.FAILED)
            .update(
                {
                    ScrapingJob.status: ScrapingJobStatus.COMPLETED,
                    ScrapingJob.completed_at: now,
                    ScrapingJob.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        self.db_session.commit()
        self.db_session.refresh(job)
        return updated == 1

    def mark_stopped(self, job: ScrapingJob) -> ScrapingJob:
        """Force a job to FAILED with the manual-stop marker"""
        now = utcnow()
        job.status = ScrapingJobStatus.FAILED
        job.completed_at = now
        self.merge_metadata(job, {"stopped": True, "stoppedAt": now.isoformat()})
        self.db_session.commit()
        self.db_session.refresh(job)
        return job

    def is_stopped(self, job_id: UUID) -> bool:
        """Fresh read of the stop marker, bypassing the session identity map"""
        row = (
            self.db_session.query(ScrapingJob.status, ScrapingJob.job_metadata)
            .filter(ScrapingJob.id == job_id)
            .first()
        )
        if row is None:
            return True
        return row.status == ScrapingJobStatus.FAILED and bool((row.job_metadata or {}).get("stopped"))
