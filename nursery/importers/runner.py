# nursery/importers/runner.py
"""
Job runners take an already created job and execute it in the background,
keeping a handle that a stop request can signal.
"""
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Optional
from uuid import UUID
import threading

from nursery.core.logging import get_logger
from nursery.db.base import Database
from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository
from nursery.importers.base import EventCancellationToken, ImportOptions, ImportService

logger = get_logger(__name__)


class JobRunner(ABC):
    @abstractmethod
    def submit(self, job_id: UUID, options: ImportOptions) -> None:
        """Start the job without waiting for it"""

    @abstractmethod
    def cancel(self, job_id: UUID) -> bool:
        """Signal a running job to stop; False when this runner does not know the job"""

    def shutdown(self) -> None:
        pass


class ThreadJobRunner(JobRunner):
    """Runs jobs on a thread pool inside the web process"""

    def __init__(self, import_service: ImportService, database: Database, max_workers: int = 2):
        self.import_service = import_service
        self.database = database
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="import-job")
        self._tokens: Dict[UUID, EventCancellationToken] = {}
        self._futures: Dict[UUID, Future] = {}
        self._lock = threading.Lock()

    def submit(self, job_id: UUID, options: ImportOptions) -> None:
        token = EventCancellationToken()
        with self._lock:
            self._tokens[job_id] = token
            self._futures[job_id] = self.executor.submit(self._run, job_id, options, token)

    def _run(self, job_id: UUID, options: ImportOptions, token: EventCancellationToken) -> None:
        try:
            self.import_service.run_job(job_id, options, token)
        except Exception as e:
            # the job row already records the failure; nobody awaits this thread
            logger.error(f"Import job {job_id} failed: {e}", exc_info=True)
        finally:
            with self._lock:
                self._tokens.pop(job_id, None)
                self._futures.pop(job_id, None)

    def cancel(self, job_id: UUID) -> bool:
        with self._lock:
            token = self._tokens.get(job_id)
            future = self._futures.get(job_id)
        if token is None:
            return False
        token.cancel()
        if future is not None and future.cancel():
            # never started, so _run will not clean up after it
            with self._lock:
                self._tokens.pop(job_id, None)
                self._futures.pop(job_id, None)
            self._mark_stopped([job_id])
        logger.info(f"Cancellation signalled for import job {job_id}")
        return True

    def wait(self, job_id: UUID, timeout: Optional[float] = None) -> None:
        """Block until a submitted job has finished (used by the CLI)"""
        with self._lock:
            future = self._futures.get(job_id)
        if future is not None:
            future.exception(timeout=timeout)

    def _mark_stopped(self, job_ids) -> None:
        """Record the stop on jobs that were dropped before they ever ran"""
        with self.database.session() as session:
            jobs = ScrapingJobRepository(session)
            for job_id in job_ids:
                job = jobs.get_by_id(job_id)
                if job is not None and not job.was_stopped:
                    jobs.mark_stopped(job)
                    logger.info(f"Import job {job_id} dropped from the queue and marked stopped")

    def shutdown(self) -> None:
        with self._lock:
            tokens = list(self._tokens.values())
            futures = list(self._futures.items())
        for token in tokens:
            token.cancel()
        dropped = [job_id for job_id, future in futures if future.cancel()]
        self.executor.shutdown(wait=False)
        if dropped:
            self._mark_stopped(dropped)


class CeleryJobRunner(JobRunner):
    """
    Dispatches jobs to the Celery worker. The worker watches the job row for
    the stop marker; revoking only prevents a job that has not started yet.
    """

    def __init__(self, database: Database, celery_app=None):
        self.database = database
        self.celery_app = celery_app

    def _app(self):
        if self.celery_app is None:
            from nursery.worker.celery_app import celery_app

            self.celery_app = celery_app
        return self.celery_app

    def submit(self, job_id: UUID, options: ImportOptions) -> None:
        result = self._app().send_task("import:run", args=[str(job_id), options.to_metadata()])
        with self.database.session() as session:
            jobs = ScrapingJobRepository(session)
            job = jobs.get_by_id(job_id)
            if job is not None:
                jobs.merge_metadata(job, {"taskId": result.id})
                session.commit()
        logger.info(f"Dispatched import job {job_id} as task {result.id}")

    def cancel(self, job_id: UUID) -> bool:
        with self.database.session() as session:
            job = ScrapingJobRepository(session).get_by_id(job_id)
            task_id = (job.job_metadata or {}).get("taskId") if job else None
        if not task_id:
            return False
        self._app().control.revoke(task_id)
        logger.info(f"Revoked task {task_id} of import job {job_id}")
        return True
