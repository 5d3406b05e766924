# tests/conftest.py
import itertools
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

# Load test environment variables
load_dotenv(".env.test", override=True)

from nursery.api.web_app import create_app
from nursery.core.categories import category_slug, generate_slug
from nursery.core.config import Settings
from nursery.db.base import Database
from nursery.db.models import (
    AvailabilityStatus,
    Category,
    Product,
    ProductSource,
    ProductType,
)
from nursery.importers.plantmark_service import PlantmarkImportService
from nursery.importers.runner import JobRunner

ADMIN_KEY = "test-admin-key"


class RecordingJobRunner(JobRunner):
    """Runner that remembers what it was asked to do and runs nothing"""

    def __init__(self):
        self.submitted = []
        self.cancelled = []

    def submit(self, job_id, options):
        self.submitted.append((job_id, options))

    def cancel(self, job_id):
        self.cancelled.append(job_id)
        return True

    def shutdown(self):
        pass


@pytest.fixture(scope="function")
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        ADMIN_API_KEY=ADMIN_KEY,
        IMPORT_SERVICE="plantmark",
        IMPORT_RUNNER="thread",
        DEBUG=False,
    )


@pytest.fixture(scope="function")
def database():
    """In-memory SQLite database shared by every session of a test."""
    db = Database(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture(scope="function")
def db_session(database):
    with database.session() as session:
        yield session


@pytest.fixture(scope="function")
def job_runner():
    return RecordingJobRunner()


@pytest.fixture(scope="function")
def import_service(database):
    return PlantmarkImportService(database, client=MagicMock(), scraper=MagicMock(), scrape_details=False)


@pytest.fixture(scope="function")
def app(test_settings, database, import_service, job_runner):
    return create_app(
        settings=test_settings,
        database=database,
        import_service=import_service,
        job_runner=job_runner,
    )


@pytest.fixture(scope="function")
def client(app):
    return TestClient(app)


@pytest.fixture(scope="function")
def admin_headers():
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture(scope="function")
def make_category(db_session):
    """Create and commit a category; age_days pushes created_at into the past."""

    def _make(name, slug=None, parent=None, age_days=0):
        category = Category(
            name=name,
            slug=slug or category_slug(name),
            parent_id=parent.id if parent else None,
            created_at=datetime.now(timezone.utc) - timedelta(days=age_days),
        )
        db_session.add(category)
        db_session.commit()
        return category

    return _make


@pytest.fixture(scope="function")
def make_product(db_session):
    """Create and commit a product; extra keyword arguments become columns."""
    counter = itertools.count(1)

    def _make(name=None, category=None, linked=(), age_minutes=None, **fields):
        n = next(counter)
        name = name or f"Test Plant {n}"
        values = {
            "name": name,
            "slug": generate_slug(name),
            "product_type": ProductType.PHYSICAL,
            "price": 19.95,
            "availability": AvailabilityStatus.IN_STOCK,
            "source": ProductSource.MANUAL,
            "category_id": category.id if category else None,
            # later products are newer unless told otherwise
            "created_at": datetime.now(timezone.utc)
            - timedelta(minutes=age_minutes if age_minutes is not None else 1000 - n),
        }
        values.update(fields)
        product = Product(**values)
        product.categories = list(linked)
        db_session.add(product)
        db_session.commit()
        return product

    return _make
