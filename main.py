import click
import uvicorn
from nursery.core.logging import get_logger
from nursery.core.config import settings
from nursery.core.errors import NurseryAPIError
from nursery.db.base import Database
from nursery.db.models.enums import ScrapingJobStatus, ScrapingJobType

logger = get_logger(__name__)


def _database() -> Database:
    return Database.from_settings(settings)


@click.group()
def cli():
    """Nursery API CLI"""
    pass


@cli.command()
@click.option("--host", default="0.0.0.0")
@click.option("--port", default=8000)
@click.option("--workers", default=1)
@click.option("--production", is_flag=True, help="Run in production mode")
def serve(host, port, workers, production):
    """Start the API server"""
    reload = not production  # Auto-reload unless production mode

    uvicorn.run(
        "nursery.api.web_app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers if production else 1,
        log_level="info" if production else "debug",
    )


@cli.command()
@click.option("--concurrency", default=1, help="Number of import jobs run in parallel")
def worker(concurrency):
    """Start the Celery worker that runs import jobs"""
    from nursery.worker.celery_app import celery_app

    celery_app.worker_main(
        ["worker", "--loglevel=info", "-Q", "imports", f"--concurrency={concurrency}"]
    )


@cli.command("init-db")
def init_db():
    """Create tables directly (local SQLite databases; PostgreSQL uses Alembic)"""
    database = _database()
    database.create_all()
    click.echo(f"Tables created on {database.engine.url.render_as_string(hide_password=True)}")


@cli.group("import-jobs")
def import_jobs():
    """Start, list and stop catalog import jobs"""
    pass


@import_jobs.command("start")
@click.option("--job-type", type=click.Choice([t.value for t in ScrapingJobType]), default="FULL")
@click.option("--use-api/--scrape", default=True, help="Try the JSON API first, or scrape directly")
@click.option("--category", help="Only import this partner category")
@click.option("--max-products", type=click.IntRange(min=1), help="Stop after this many products")
def start_import(job_type, use_api, category, max_products):
    """Create an import job and run it with the configured runner"""
    from nursery.importers.factory import create_import_service, create_job_runner
    from nursery.importers.runner import ThreadJobRunner
    from nursery.schemas.import_job import ImportJobCreate
    from nursery.services.import_job_service import ImportJobService

    database = _database()
    import_service = create_import_service(settings, database)
    runner = create_job_runner(settings, database, import_service)
    request = ImportJobCreate(
        job_type=ScrapingJobType(job_type), use_api=use_api, category=category, max_products=max_products
    )

    try:
        with database.session() as session:
            service = ImportJobService(session, import_service, runner)
            job_id = service.start_job(request)
    except NurseryAPIError as e:
        click.echo(f"Error: {e.error}")
        return

    click.echo(f"Job created: {job_id}")
    if not isinstance(runner, ThreadJobRunner):
        click.echo("Dispatched to the Celery worker")
        return

    click.echo("Running in this process, Ctrl+C stops the job")
    try:
        runner.wait(job_id)
    except KeyboardInterrupt:
        with database.session() as session:
            ImportJobService(session, import_service, runner).stop_job(job_id)
        runner.wait(job_id)
        click.echo("Stopped")

    job = import_service.get_status(job_id)
    if job:
        click.echo(
            f"Status: {job.status.value}  processed: {job.products_processed}  "
            f"created: {job.products_created}  updated: {job.products_updated}  errors: {len(job.errors)}"
        )


@import_jobs.command("list")
@click.option("--status", "job_status", type=click.Choice([s.value for s in ScrapingJobStatus]))
@click.option("--limit", default=20)
def list_imports(job_status, limit):
    """List recent import jobs"""
    from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository

    status = ScrapingJobStatus(job_status) if job_status else None
    with _database().session() as session:
        repo = ScrapingJobRepository(session)
        jobs = repo.list(status=status, limit=limit)
        click.echo(f"{repo.count(status=status)} jobs")
        for job in jobs:
            stopped = " (stopped)" if job.was_stopped else ""
            click.echo(
                f"  {job.id}  {job.job_type.value:<11} {job.status.value:<9}{stopped}  "
                f"processed={job.products_processed} created={job.products_created} "
                f"updated={job.products_updated}  {job.created_at:%Y-%m-%d %H:%M}"
            )


@import_jobs.command("stop")
@click.argument("job_id", type=click.UUID)
def stop_import(job_id):
    """Mark a job stopped; a worker running it stops at its next check"""
    from nursery.importers.factory import create_import_service, create_job_runner
    from nursery.services.import_job_service import ImportJobService

    database = _database()
    import_service = create_import_service(settings, database)
    runner = create_job_runner(settings, database, import_service)
    try:
        with database.session() as session:
            job = ImportJobService(session, import_service, runner).stop_job(job_id)
    except NurseryAPIError as e:
        click.echo(f"Error: {e.error}")
        return
    click.echo(f"Job {job.id} stopped")


def _print_breakdown(service):
    click.echo("Products per category:")
    for name, count in service.category_breakdown().items():
        click.echo(f"  {name}: {count}")


@cli.command("repair-categories")
@click.option("--limit", type=click.IntRange(min=1), help="Only look at this many products")
@click.option("--dry-run", is_flag=True, help="Report changes without writing them")
def repair_categories(limit, dry_run):
    """Re-derive product categories from their source URLs"""
    from nursery.services.category_repair_service import CategoryRepairService

    with _database().session() as session:
        service = CategoryRepairService(session)
        result = service.repair_from_source_urls(limit=limit, dry_run=dry_run)
        prefix = "[dry run] " if dry_run else ""
        click.echo(f"{prefix}Processed: {result.processed}")
        click.echo(f"{prefix}Updated: {result.updated}")
        click.echo(f"{prefix}Unchanged: {result.unchanged}")
        click.echo(f"{prefix}Categories created: {result.categories_created}")
        click.echo(f"{prefix}Skipped (no source URL): {result.skipped_no_url}")
        click.echo(f"{prefix}Skipped (unparsable URL): {result.skipped_unparsable}")
        click.echo(f"{prefix}Errors: {result.errors}")
        for name, count in sorted(result.changes.items()):
            click.echo(f"  -> {name}: {count}")
        if not dry_run:
            _print_breakdown(service)


@cli.command("fix-orphans")
def fix_orphans():
    """Reassign products whose category no longer exists"""
    from nursery.services.category_repair_service import CategoryRepairService

    with _database().session() as session:
        result = CategoryRepairService(session).fix_orphaned_products()
        click.echo(f"Orphaned products: {result.orphaned}")
        click.echo(f"Reassigned to {result.target_category}: {result.reassigned}")


@cli.command("merge-duplicates")
def merge_duplicates():
    """Move products from duplicate spellings onto the main categories"""
    from nursery.services.category_repair_service import CategoryRepairService

    with _database().session() as session:
        service = CategoryRepairService(session)
        result = service.merge_duplicate_categories()
        click.echo(f"Duplicate categories: {result.duplicates_found}")
        for line in result.merged:
            click.echo(f"  {line}")
        click.echo(f"Products moved: {result.products_moved}, category links moved: {result.links_moved}")
        _print_breakdown(service)


@cli.command("ensure-main-categories")
def ensure_main_categories():
    """Create any of the main categories that are missing"""
    from nursery.services.category_repair_service import CategoryRepairService

    with _database().session() as session:
        created = CategoryRepairService(session).ensure_main_categories()
        if created:
            click.echo(f"Created: {', '.join(created)}")
        else:
            click.echo("All main categories exist")


if __name__ == "__main__":
    cli()
