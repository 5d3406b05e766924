# tests/importers/test_plantmark_service.py
"""
Catalog import against fake partner-site client and scraper.
"""
import pytest

from nursery.db.models import Category, Product, ProductSource, ScrapingJob, ScrapingJobStatus
from nursery.db.repositories.scraping_job_repository import ScrapingJobRepository
from nursery.importers.base import (
    EventCancellationToken,
    ImportOptions,
    JobStatusCancellationToken,
    PlantmarkAPIError,
)
from nursery.importers.plantmark_service import (
    PlantmarkImportService,
    calculate_price,
    merge_metadata,
    should_update,
)
from nursery.importers.validation import validate_product

BASE_URL = "https://www.plantmark.com.au"


def api_record(source_id, name, category="trees", variants=None, **extra):
    slug = name.lower().replace(" ", "-")
    record = {
        "id": source_id,
        "name": name,
        "slug": slug,
        "sourceUrl": f"{BASE_URL}/{category}/{slug}",
        "categories": [category],
        "variants": variants if variants is not None else [{"size": "45L", "price": 120.0}, {"size": "25L", "price": 60.0}],
    }
    record.update(extra)
    return record


class FakeClient:
    def __init__(self, pages=None, error=None):
        self.pages = pages or []
        self.error = error
        self.calls = []

    def get_products(self, page=1, page_size=50, category=None):
        self.calls.append((page, category))
        if self.error:
            raise self.error
        products = self.pages[page - 1] if page <= len(self.pages) else []
        return {"products": products, "hasMore": page < len(self.pages)}


class FakeScraper:
    def __init__(self, pages=None, details=None, on_detail=None):
        self.pages = pages or []
        self.details = details or {}
        self.on_detail = on_detail
        self.listing_calls = []
        self.detail_calls = []

    def scrape_products(self, page=1, category=None):
        self.listing_calls.append(page)
        if page > len(self.pages):
            return [], False
        return self.pages[page - 1]

    def scrape_product_detail(self, source_url):
        self.detail_calls.append(source_url)
        if self.on_detail:
            self.on_detail(len(self.detail_calls))
        return self.details.get(source_url)


def make_service(database, client=None, scraper=None, scrape_details=False):
    return PlantmarkImportService(
        database,
        client=client or FakeClient(),
        scraper=scraper or FakeScraper(),
        scrape_details=scrape_details,
    )


def run(service, options=None, token=None):
    options = options or ImportOptions()
    job_id = service.create_job(options)
    result = service.run_job(job_id, options, token or EventCancellationToken())
    return job_id, result


def test_api_import_creates_products(database, db_session):
    client = FakeClient(pages=[[api_record("p1", "Acer rubrum")], [api_record("p2", "Betula pendula")]])
    service = make_service(database, client=client)

    job_id, result = run(service)

    assert (result.processed, result.created, result.updated, result.skipped) == (2, 2, 0, 0)
    assert client.calls == [(1, None), (2, None)]

    product = db_session.query(Product).filter(Product.source_id == "p1").one()
    assert product.source == ProductSource.API
    # twice the cheapest variant
    assert product.price == 120.0
    assert product.slug == "acer-rubrum"
    assert product.category.name == "Trees"
    assert [category.name for category in product.categories] == ["Trees"]
    assert product.product_metadata["variants"][1] == {"size": "25L", "price": 60.0}
    assert "scrapedAt" in product.product_metadata

    job = db_session.get(ScrapingJob, job_id)
    assert job.status == ScrapingJobStatus.COMPLETED
    assert job.started_at is not None and job.completed_at is not None
    assert (job.products_processed, job.products_created, job.products_updated) == (2, 2, 0)
    assert service.get_status(job_id).status == ScrapingJobStatus.COMPLETED


def test_reimport_skips_unchanged_and_updates_changed(database, db_session):
    first = [api_record("p1", "Acer rubrum"), api_record("p2", "Betula pendula")]
    run(make_service(database, client=FakeClient(pages=[first])))
    scraped_at = db_session.query(Product).filter(Product.source_id == "p1").one().product_metadata["scrapedAt"]

    second = [
        api_record("p1", "Acer rubrum"),
        api_record("p2", "Betula pendula", variants=[{"size": "25L", "price": 70.0}]),
    ]
    job_id, result = run(make_service(database, client=FakeClient(pages=[second])))

    assert (result.created, result.updated, result.skipped) == (0, 1, 1)
    db_session.expire_all()
    assert db_session.query(Product).count() == 2
    unchanged = db_session.query(Product).filter(Product.source_id == "p1").one()
    assert unchanged.product_metadata["scrapedAt"] == scraped_at
    changed = db_session.query(Product).filter(Product.source_id == "p2").one()
    assert changed.price == 140.0
    assert changed.product_metadata["variants"] == [{"size": "25L", "price": 70.0}]
    assert db_session.get(ScrapingJob, job_id).job_metadata["skipped"] == 1


def test_api_failure_falls_back_to_scraping(database, db_session):
    listing = [{"id": "101", "sourceId": "101", "name": "Acer rubrum", "sourceUrl": f"{BASE_URL}/trees/acer-rubrum", "price": 45.0}]
    scraper = FakeScraper(pages=[(listing, False)])
    service = make_service(database, client=FakeClient(error=PlantmarkAPIError("no endpoint")), scraper=scraper)

    job_id, result = run(service)

    assert result.created == 1
    product = db_session.query(Product).one()
    assert product.source == ProductSource.SCRAPED
    # no variants: the listed price is used
    assert product.price == 45.0
    # category derived from the URL
    assert product.category.name == "Trees"
    # a first page without a next link is followed by one probe of page 2
    assert scraper.listing_calls == [1, 2]


def test_scraping_stops_after_two_empty_pages(database):
    listing = [{"id": "1", "name": "Acer", "sourceUrl": f"{BASE_URL}/trees/acer"}]
    late = [{"id": "2", "name": "Betula", "sourceUrl": f"{BASE_URL}/trees/betula"}]
    scraper = FakeScraper(pages=[(listing, True), ([], True), ([], True), (late, False)])
    service = make_service(database, scraper=scraper)

    _, result = run(service, ImportOptions(use_api=False))

    assert result.processed == 1
    assert scraper.listing_calls == [1, 2, 3]


def test_max_products_limits_the_run(database):
    records = [api_record(f"p{i}", f"Plant {i}") for i in range(5)]
    service = make_service(database, client=FakeClient(pages=[records]))

    _, result = run(service, ImportOptions(max_products=3))

    assert result.processed == 3
    assert result.created == 3


def test_detail_pages_enrich_scraped_records(database, db_session):
    url = f"{BASE_URL}/plant-finder/acer-rubrum"
    listing = [{"id": "101", "name": "Acer rubrum", "sourceUrl": url}]
    details = {
        url: {
            "id": "ignored",
            "name": "Acer rubrum 'October Glory'",
            "sourceUrl": url,
            "categories": ["Trees", "Feature Plants"],
            "variants": [{"size": "45L", "price": 110.0, "availability": "IN_STOCK"}],
            "specifications": {"Height": "12m"},
            "availability": "IN_STOCK",
        }
    }
    scraper = FakeScraper(pages=[(listing, False)], details=details)
    service = make_service(database, scraper=scraper, scrape_details=True)

    _, result = run(service, ImportOptions(use_api=False))

    assert result.created == 1
    product = db_session.query(Product).one()
    assert product.name == "Acer rubrum 'October Glory'"
    assert product.source_id == "101"
    assert product.price == 220.0
    assert product.category.name == "Trees"
    assert sorted(category.name for category in product.categories) == ["Feature plants", "Trees"]
    assert product.product_metadata["specifications"] == {"Height": "12m"}


def test_bad_records_are_recorded_and_skipped(database, db_session):
    records = [
        api_record("p1", "Acer rubrum"),
        {"id": "p2", "name": "", "sourceUrl": f"{BASE_URL}/trees/x"},
        {"id": "p3", "name": "Mystery", "sourceUrl": f"{BASE_URL}/"},
    ]
    service = make_service(database, client=FakeClient(pages=[records]))

    job_id, result = run(service)

    assert (result.processed, result.created) == (3, 1)
    assert len(result.errors) == 2
    job = db_session.get(ScrapingJob, job_id)
    assert job.status == ScrapingJobStatus.COMPLETED
    assert [error["productId"] for error in job.errors] == ["p2", "p3"]
    assert "has no category" in job.errors[1]["message"]


def test_uuid_slug_is_replaced_and_conflicts_get_a_suffix(database, db_session, make_product):
    legacy = make_product(name="Acer rubrum", slug="3f2b8c1e-9d4a-4b6e-8f00-123456789abc", source_id="p1", age_minutes=60)
    make_product(name="Other acer", slug="acer-rubrum", age_minutes=30)
    service = make_service(database, client=FakeClient(pages=[[api_record("p1", "Acer rubrum")]]))

    _, result = run(service)

    assert result.updated == 1
    db_session.expire_all()
    assert db_session.get(Product, legacy.id).slug == f"acer-rubrum-{str(legacy.id)[:8]}"


def test_categories_are_reused_case_insensitively(database, db_session, make_category):
    existing = make_category("Trees")
    records = [api_record("p1", "Acer rubrum", category="TREES"), api_record("p2", "Betula", category="tree")]
    service = make_service(database, client=FakeClient(pages=[records]))

    run(service)

    assert db_session.query(Category).count() == 1
    assert {product.category_id for product in db_session.query(Product)} == {existing.id}


@pytest.mark.parametrize("in_process_token", [False, True])
def test_stop_request_ends_a_running_job(database, db_session, in_process_token):
    """
    A stop written to the job row mid-run is seen at the next product, also
    when the runner only hands over an in-process token (stop from another
    process).
    """
    urls = [f"{BASE_URL}/trees/plant-{i}" for i in range(5)]
    listing = [{"id": str(i), "name": f"Plant {i}", "sourceUrl": url} for i, url in enumerate(urls)]
    state = {}

    def stop_on_second_detail(count):
        if count == 2:
            with database.session() as session:
                jobs = ScrapingJobRepository(session)
                jobs.mark_stopped(jobs.get_by_id(state["job_id"]))

    scraper = FakeScraper(pages=[(listing, False)], on_detail=stop_on_second_detail)
    service = make_service(database, scraper=scraper, scrape_details=True)
    options = ImportOptions(use_api=False, category="trees")
    job_id = service.create_job(options)
    state["job_id"] = job_id

    token = EventCancellationToken() if in_process_token else JobStatusCancellationToken(database, job_id)
    result = service.run_job(job_id, options, token)

    assert result.cancelled is True
    assert result.processed == 2
    assert len(scraper.detail_calls) == 2
    job = db_session.get(ScrapingJob, job_id)
    assert job.status == ScrapingJobStatus.FAILED
    assert job.was_stopped
    assert job.products_processed == 2
    assert job.job_metadata["category"] == "trees"


def test_cancelled_token_before_start(database, db_session):
    service = make_service(database, client=FakeClient(pages=[[api_record("p1", "Acer")]]))
    token = EventCancellationToken()
    token.cancel()

    job_id, result = run(service, token=token)

    assert result.cancelled is True
    assert result.processed == 0
    job = db_session.get(ScrapingJob, job_id)
    assert job.status == ScrapingJobStatus.FAILED
    assert job.was_stopped


def test_unexpected_failure_marks_job_failed(database, db_session):
    class BrokenScraper(FakeScraper):
        def scrape_products(self, page=1, category=None):
            raise RuntimeError("layout changed")

    service = make_service(database, scraper=BrokenScraper())
    options = ImportOptions(use_api=False)
    job_id = service.create_job(options)

    with pytest.raises(RuntimeError):
        service.run_job(job_id, options, EventCancellationToken())

    job = db_session.get(ScrapingJob, job_id)
    assert job.status == ScrapingJobStatus.FAILED
    assert job.errors[-1]["message"] == "layout changed"
    assert not job.was_stopped


def test_should_update():
    assert should_update("new", "old")
    assert should_update("new", None)
    assert not should_update(None, "old")
    assert not should_update("same", "same")


def test_merge_metadata():
    existing = {"specifications": {"Height": "10m", "Width": "5m"}, "variants": [{"size": "25L"}], "note": "keep"}
    new = {"specifications": {"Height": "12m"}, "variants": [{"size": "45L"}], "note": None, "origin": "NSW"}

    merged = merge_metadata(existing, new)

    assert merged == {
        "specifications": {"Height": "12m", "Width": "5m"},
        "variants": [{"size": "45L"}],
        "note": "keep",
        "origin": "NSW",
    }
    assert merge_metadata(None, None) == {}


def test_calculate_price():
    base = {"id": "1", "name": "Acer", "sourceUrl": f"{BASE_URL}/trees/acer"}

    assert calculate_price(validate_product({**base, "variants": [{"price": 30}, {"price": 0}, {"price": "n/a"}]})) == 60
    assert calculate_price(validate_product({**base, "price": 12.5})) == 12.5
    assert calculate_price(validate_product(base)) == 0


def test_main_category_with_comma_is_not_split(database, db_session):
    record = api_record("p1", "Howea forsteriana", category="palms", categories=["Palms, Ferns & Tropical"])
    service = make_service(database, client=FakeClient(pages=[[record]]))

    run(service)

    product = db_session.query(Product).one()
    assert [category.name for category in product.categories] == ["Palms, Ferns & Tropical"]
    assert db_session.query(Category).count() == 1
