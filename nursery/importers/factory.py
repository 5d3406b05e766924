# nursery/importers/factory.py
"""Adapter selection, done once when a process starts."""
from nursery.db.base import Database
from nursery.importers.base import ImportService
from nursery.importers.runner import CeleryJobRunner, JobRunner, ThreadJobRunner


def create_import_service(settings, database: Database) -> ImportService:
    kind = settings.IMPORT_SERVICE.lower()
    if kind == "plantmark":
        from nursery.importers.plantmark_service import PlantmarkImportService

        return PlantmarkImportService.from_settings(settings, database)
    if kind == "disabled":
        from nursery.importers.unavailable import UnavailableImportService

        return UnavailableImportService(database)
    raise ValueError(f"Unknown IMPORT_SERVICE: {settings.IMPORT_SERVICE}")


def create_job_runner(settings, database: Database, import_service: ImportService) -> JobRunner:
    kind = settings.IMPORT_RUNNER.lower()
    if kind == "thread":
        return ThreadJobRunner(import_service, database, max_workers=settings.IMPORT_MAX_WORKERS)
    if kind == "celery":
        return CeleryJobRunner(database)
    raise ValueError(f"Unknown IMPORT_RUNNER: {settings.IMPORT_RUNNER}")
