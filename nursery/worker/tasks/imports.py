# nursery/worker/tasks/imports.py
"""
Celery task running catalog import jobs created by the web API.
"""
import logging
from typing import Optional
from uuid import UUID
from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded
from nursery.core.config import settings
from nursery.db.base import Database
from nursery.importers.base import ImportOptions, JobStatusCancellationToken
from nursery.importers.factory import create_import_service

logger = logging.getLogger(__name__)

_database: Optional[Database] = None


def get_database() -> Database:
    """One engine per worker process"""
    global _database
    if _database is None:
        _database = Database.from_settings(settings)
    return _database


@shared_task(name="import:run", bind=True)
def run_import_job(self, job_id, options):
    """
    Run one import job. Failures are recorded on the job row by the import
    service; the task result only summarises the outcome.
    """
    database = get_database()
    import_service = create_import_service(settings, database)
    job_uuid = UUID(job_id)
    import_options = ImportOptions.from_metadata(options or {})
    token = JobStatusCancellationToken(database, job_uuid)

    logger.info(f"Task {self.request.id} running import job {job_id}")
    try:
        result = import_service.run_job(job_uuid, import_options, token)
    except SoftTimeLimitExceeded:
        logger.error(f"Import job {job_id} hit the soft time limit")
        return {"status": "error", "job_id": job_id, "error": "time limit exceeded"}
    except Exception as e:
        logger.exception(f"Error in import job {job_id}: {e}")
        return {"status": "error", "job_id": job_id, "error": str(e)}

    return {
        "status": "cancelled" if result.cancelled else "success",
        "job_id": job_id,
        "processed": result.processed,
        "created": result.created,
        "updated": result.updated,
        "skipped": result.skipped,
        "errors": len(result.errors),
    }
