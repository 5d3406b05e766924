"""
Admin API for catalog import jobs.

Paths containing /public or /start are the dashboard variants; the admin gate
lets them through without an API key.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from uuid import UUID
import logging

from nursery.api.dependencies import get_import_job_service
from nursery.db.models.enums import ScrapingJobStatus
from nursery.schemas.import_job import ImportJobCreate, ImportJobStart
from nursery.services.import_job_service import ImportJobService

logger = logging.getLogger(__name__)

import_jobs_router = APIRouter(prefix="/import-jobs")

STATUS_HINT = "Import job started. Use GET /api/admin/import-jobs/{id} to check status."


def _accepted(job_id: UUID) -> dict:
    return {"jobId": job_id, "status": "pending", "message": STATUS_HINT}


@import_jobs_router.post("", status_code=status.HTTP_202_ACCEPTED)
def create_import_job(
    request: Optional[ImportJobCreate] = None,
    service: ImportJobService = Depends(get_import_job_service),
):
    """Create an import job and start it in the background"""
    job_id = service.start_job(request or ImportJobCreate())
    return _accepted(job_id)


@import_jobs_router.get("")
def list_import_jobs(
    job_status: Optional[ScrapingJobStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: ImportJobService = Depends(get_import_job_service),
):
    return service.list_jobs(status=job_status, offset=offset, limit=limit)


@import_jobs_router.get("/public")
def list_import_jobs_public(
    job_status: Optional[ScrapingJobStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: ImportJobService = Depends(get_import_job_service),
):
    return service.list_jobs(status=job_status, offset=offset, limit=limit)


@import_jobs_router.post("/start", status_code=status.HTTP_202_ACCEPTED)
def start_import_job(
    request: Optional[ImportJobStart] = None,
    service: ImportJobService = Depends(get_import_job_service),
):
    """Dashboard variant of create; scraping is the default here"""
    job_id = service.start_job(request or ImportJobStart())
    return {"id": job_id, **_accepted(job_id)}


@import_jobs_router.get("/{job_id}")
def get_import_job(job_id: UUID, service: ImportJobService = Depends(get_import_job_service)):
    return service.get_job(job_id)


@import_jobs_router.get("/{job_id}/public")
def get_import_job_public(job_id: UUID, service: ImportJobService = Depends(get_import_job_service)):
    return service.get_job(job_id)


@import_jobs_router.post("/{job_id}/stop")
def stop_import_job(job_id: UUID, service: ImportJobService = Depends(get_import_job_service)):
    job = service.stop_job(job_id)
    return {"message": "Import job stopped", "job": job}


@import_jobs_router.post("/{job_id}/stop/public")
def stop_import_job_public(job_id: UUID, service: ImportJobService = Depends(get_import_job_service)):
    job = service.stop_job(job_id)
    return {"message": "Import job stopped", "job": job}
