# tests/core/test_admin_auth.py
import pytest
from fastapi.testclient import TestClient

from nursery.api.web_app import create_app
from nursery.core.auth import AdminAPIKeyGate
from nursery.core.config import Settings


@pytest.mark.parametrize(
    "path,public",
    [
        ("/api/admin/import-jobs/public", True),
        ("/api/admin/import-jobs/start", True),
        ("/api/admin/import-jobs/3f2b8c1e-9d4a-4b6e-8f00-123456789abc/stop/public", True),
        ("/api/admin/fix-categories", True),
        ("/api/admin/import-jobs", False),
        ("/api/admin/products/publicity/content", False),
        ("/api/admin/products/restart/content", False),
    ],
)
def test_public_markers_match_whole_segments(path, public):
    gate = AdminAPIKeyGate()
    assert gate.is_public_path(path) is public
    assert gate.requires_key(path) is not public


def test_non_admin_paths_never_require_a_key():
    assert not AdminAPIKeyGate().requires_key("/api/products")


def test_key_comparison():
    gate = AdminAPIKeyGate()
    assert gate.is_valid_key("secret", "secret")
    assert not gate.is_valid_key("Secret", "secret")
    assert not gate.is_valid_key(None, "secret")
    # an unset key rejects everything
    assert not gate.is_valid_key("", "")
    assert not gate.is_valid_key("anything", "")


def test_admin_route_without_key_is_401(client):
    response = client.get("/api/admin/import-jobs")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "message": "Invalid or missing API key"}


def test_admin_route_with_wrong_key_is_401(client):
    response = client.get("/api/admin/import-jobs", headers={"X-API-Key": "nope"})
    assert response.status_code == 401


def test_admin_route_with_key(client, admin_headers):
    response = client.get("/api/admin/import-jobs", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"jobs": [], "total": 0}


def test_public_admin_route_without_key(client):
    response = client.get("/api/admin/import-jobs/public")
    assert response.status_code == 200


def test_slug_resembling_marker_still_needs_key(client, admin_headers):
    """A product slug such as 'publicity' does not open the route."""
    assert client.get("/api/admin/products/publicity/content").status_code == 401
    assert client.get("/api/admin/products/publicity/content", headers=admin_headers).status_code == 404


def test_unset_admin_key_rejects_requests(database, import_service, job_runner):
    settings = Settings(DATABASE_URL="sqlite://", ADMIN_API_KEY="", DEBUG=False)
    app = create_app(settings=settings, database=database, import_service=import_service, job_runner=job_runner)
    client = TestClient(app)

    assert client.get("/api/admin/import-jobs", headers={"X-API-Key": ""}).status_code == 401
    assert client.get("/api/admin/import-jobs/public").status_code == 200


def test_public_api_needs_no_key(client):
    assert client.get("/api/products").status_code == 200
    assert client.get("/api/categories").status_code == 200
