# nursery/db/models/scraping_job.py
from sqlalchemy import Column, Integer, Uuid, DateTime, Enum, func
from nursery.db.base import Base
from nursery.db.models.enums import ScrapingJobStatus, ScrapingJobType
from nursery.db.models.types import JSONDocument, utcnow
import uuid


class ScrapingJob(Base):
    """
    One run of the catalog import. Created PENDING by the orchestrator, moved
    to RUNNING and then COMPLETED/FAILED by the import worker, or forced to
    FAILED by a stop request.
    """

    __tablename__ = "scraping_jobs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_type = Column(Enum(ScrapingJobType, name="scraping_job_type"), nullable=False, default=ScrapingJobType.FULL)
    status = Column(
        Enum(ScrapingJobStatus, name="scraping_job_status"),
        nullable=False,
        default=ScrapingJobStatus.PENDING,
        index=True,
    )
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    products_processed = Column(Integer, nullable=False, default=0)
    products_created = Column(Integer, nullable=False, default=0)
    products_updated = Column(Integer, nullable=False, default=0)
    errors = Column(JSONDocument, default=list)
    job_metadata = Column("metadata", JSONDocument, default=dict)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    @property
    def was_stopped(self) -> bool:
        return bool((self.job_metadata or {}).get("stopped"))

    def __repr__(self):
        return f"<ScrapingJob(id={self.id}, status='{self.status}')>"
