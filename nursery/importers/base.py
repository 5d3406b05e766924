# nursery/importers/base.py
"""
Contract between the import-job orchestrator and whatever actually imports
catalog data.

An ImportService creates job rows synchronously and runs them later, on a
thread or a Celery worker. Running code checks a CancellationToken at its
natural pauses (between listing pages and between products) so a stop request
ends the work instead of only rewriting the job row.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import UUID
import threading

from nursery.db.base import Database
from nursery.db.models.enums import ScrapingJobType
from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository
from nursery.schemas.import_job import ImportJobCreate, ScrapingJobResponse


class JobCancelled(Exception):
    """Raised inside a running job once its cancellation token fires"""


class PlantmarkAPIError(Exception):
    """The partner JSON API is unusable (endpoint unknown or request failed)"""


@dataclass
class ImportOptions:
    job_type: ScrapingJobType = ScrapingJobType.FULL
    use_api: bool = True
    category: Optional[str] = None
    max_products: Optional[int] = None

    @classmethod
    def from_request(cls, request: ImportJobCreate) -> "ImportOptions":
        return cls(
            job_type=request.job_type,
            use_api=request.use_api,
            category=request.category,
            max_products=request.max_products,
        )

    @classmethod
    def from_metadata(cls, data: Dict[str, Any]) -> "ImportOptions":
        return cls(
            job_type=ScrapingJobType(data.get("jobType", ScrapingJobType.FULL.value)),
            use_api=data.get("useApi", True),
            category=data.get("category"),
            max_products=data.get("maxProducts"),
        )

    def to_metadata(self) -> Dict[str, Any]:
        """JSON form stored on the job row and sent to Celery"""
        return {
            "jobType": self.job_type.value,
            "useApi": self.use_api,
            "category": self.category,
            "maxProducts": self.max_products,
        }


@dataclass
class ImportResult:
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    cancelled: bool = False


class CancellationToken(ABC):
    @abstractmethod
    def is_cancelled(self) -> bool:
        raise NotImplementedError

    def raise_if_cancelled(self) -> None:
        if self.is_cancelled():
            raise JobCancelled()


class EventCancellationToken(CancellationToken):
    """In-process token backed by a threading.Event"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


class JobStatusCancellationToken(CancellationToken):
    """
    Token for jobs running in another process: the stop marker written on the
    job row is the signal. Each check opens a short session of its own.
    """

    def __init__(self, database: Database, job_id: UUID):
        self.database = database
        self.job_id = job_id

    def is_cancelled(self) -> bool:
        with self.database.session() as session:
            return ScrapingJobRepository(session).is_stopped(self.job_id)


class AnyCancellationToken(CancellationToken):
    """Fires as soon as one of the wrapped tokens fires, cheapest first"""

    def __init__(self, *tokens: CancellationToken):
        self.tokens = tokens

    def is_cancelled(self) -> bool:
        return any(token.is_cancelled() for token in self.tokens)


class ImportService(ABC):
    """Creates, runs and reports on catalog import jobs"""

    @property
    def is_available(self) -> bool:
        return True

    @abstractmethod
    def create_job(self, options: ImportOptions) -> UUID:
        """Persist a PENDING job and return its id without doing any import work"""

    @abstractmethod
    def run_job(self, job_id: UUID, options: ImportOptions, cancel_token: CancellationToken) -> ImportResult:
        """Do the import for an existing job, honouring the cancellation token"""

    @abstractmethod
    def get_status(self, job_id: UUID) -> Optional[ScrapingJobResponse]:
        """Current state of a job, or None when it does not exist"""
