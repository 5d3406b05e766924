# tests/db/test_scraping_job_repository.py
from nursery.db.models import ScrapingJobStatus, ScrapingJobType
from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository


def test_complete_running_job(db_session):
    jobs = ScrapingJobRepository(db_session)
    job = jobs.mark_running(jobs.create(ScrapingJobType.FULL, {"useApi": True}))

    assert jobs.complete_unless_stopped(job) is True
    assert job.status == ScrapingJobStatus.COMPLETED
    assert job.completed_at is not None


def test_complete_does_not_overwrite_a_concurrent_stop(database, db_session):
    jobs = ScrapingJobRepository(db_session)
    job = jobs.mark_running(jobs.create(ScrapingJobType.FULL, {"useApi": True}))

    # stop committed by another session while the run is finishing
    with database.session() as other:
        other_jobs = ScrapingJobRepository(other)
        other_jobs.mark_stopped(other_jobs.get_by_id(job.id))

    assert jobs.complete_unless_stopped(job) is False
    assert job.status == ScrapingJobStatus.FAILED
    assert job.was_stopped
    assert job.job_metadata["useApi"] is True


def test_is_stopped_reads_the_marker(db_session):
    jobs = ScrapingJobRepository(db_session)
    job = jobs.create(ScrapingJobType.INCREMENTAL)

    assert jobs.is_stopped(job.id) is False
    jobs.mark_stopped(job)
    assert jobs.is_stopped(job.id) is True