# tests/test_cli.py
from click.testing import CliRunner

import main
from nursery.core.categories import MAIN_CATEGORIES
from nursery.db.models import Category, ScrapingJobType
from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository


def test_ensure_main_categories_command(monkeypatch, database, db_session):
    monkeypatch.setattr(main, "_database", lambda: database)
    runner = CliRunner()

    first = runner.invoke(main.cli, ["ensure-main-categories"])
    second = runner.invoke(main.cli, ["ensure-main-categories"])

    assert first.exit_code == 0
    assert "Created: Trees" in first.output
    assert second.output.strip() == "All main categories exist"
    assert db_session.query(Category).count() == len(MAIN_CATEGORIES)


def test_repair_categories_dry_run(monkeypatch, database, make_product):
    monkeypatch.setattr(main, "_database", lambda: database)
    make_product(source_url="https://www.plantmark.com.au/trees/acer")

    result = CliRunner().invoke(main.cli, ["repair-categories", "--dry-run"])

    assert result.exit_code == 0
    assert "[dry run] Updated: 1" in result.output
    assert "-> Trees: 1" in result.output


def test_list_import_jobs(monkeypatch, database, db_session):
    monkeypatch.setattr(main, "_database", lambda: database)
    ScrapingJobRepository(db_session).create(ScrapingJobType.FULL, {})

    result = CliRunner().invoke(main.cli, ["import-jobs", "list"])

    assert result.exit_code == 0
    assert result.output.startswith("1 jobs")
    assert "PENDING" in result.output
