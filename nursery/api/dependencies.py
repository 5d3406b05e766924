from fastapi import Depends, Request
from sqlalchemy.orm import Session

from nursery.db.base import get_db_session
from nursery.services.category_service import CategoryService
from nursery.services.import_job_service import ImportJobService
from nursery.services.product_service import ProductService


def get_category_service(db: Session = Depends(get_db_session)) -> CategoryService:
    return CategoryService(db)


def get_product_service(db: Session = Depends(get_db_session)) -> ProductService:
    return ProductService(db)


def get_import_job_service(request: Request, db: Session = Depends(get_db_session)) -> ImportJobService:
    """Orchestrator bound to the request's session and the process-wide import adapter"""
    return ImportJobService(db, request.app.state.import_service, request.app.state.job_runner)
