# tests/api/test_products_api.py
"""
Public product endpoints: listing, lookup by id or slug, related products.
"""
from uuid import uuid4

from nursery.db.models import ProductType


def test_list_products_paginates_with_total(client, make_product):
    for _ in range(25):
        make_product()

    response = client.get("/api/products", params={"page": 2, "limit": 10})

    assert response.status_code == 200
    data = response.json()
    assert len(data["data"]) == 10
    assert data["pagination"] == {"page": 2, "limit": 10, "total": 25, "totalPages": 3}


def test_list_products_newest_first(client, make_product):
    older = make_product(age_minutes=60)
    newer = make_product(age_minutes=1)

    data = client.get("/api/products").json()

    assert [product["id"] for product in data["data"]] == [str(newer.id), str(older.id)]


def test_list_products_filters(client, make_category, make_product):
    trees = make_category("Trees")
    make_product(category=trees)
    make_product(category=trees, product_type=ProductType.BUNDLE)
    make_product()

    by_category = client.get("/api/products", params={"categoryId": str(trees.id)}).json()
    by_type = client.get("/api/products", params={"productType": "BUNDLE"}).json()

    assert by_category["pagination"]["total"] == 2
    assert by_type["pagination"]["total"] == 1
    assert by_type["data"][0]["productType"] == "BUNDLE"


def test_list_products_rejects_bad_page(client):
    response = client.get("/api/products", params={"page": 0})

    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"
    assert response.json()["details"][0]["loc"] == ["query", "page"]


def test_get_product_by_id_and_slug(client, make_category, make_product):
    trees = make_category("Trees")
    product = make_product(
        name="Acer Rubrum",
        category=trees,
        product_metadata={"variants": [{"size": "45L", "price": 120.0}]},
        images=["https://example.com/acer.jpg"],
    )

    by_id = client.get(f"/api/products/{product.id}")
    by_slug = client.get("/api/products/acer-rubrum")

    assert by_id.status_code == 200
    assert by_slug.json()["id"] == by_id.json()["id"] == str(product.id)
    data = by_id.json()
    assert data["metadata"] == {"variants": [{"size": "45L", "price": 120.0}]}
    assert data["images"] == ["https://example.com/acer.jpg"]
    assert data["category"] == {"id": str(trees.id), "name": "Trees", "slug": "trees"}
    assert data["content"] is None


def test_id_match_wins_over_slug(client, make_product):
    first = make_product(name="First")
    make_product(name="Second", slug=str(first.id))

    data = client.get(f"/api/products/{first.id}").json()

    assert data["name"] == "First"


def test_unknown_product_is_not_found(client):
    assert client.get(f"/api/products/{uuid4()}").json() == {"error": "Product not found"}
    assert client.get("/api/products/no-such-plant").status_code == 404


def test_related_products(client, make_category, make_product):
    trees = make_category("Trees")
    shrubs = make_category("Shrubs")
    product = make_product(category=trees)
    for _ in range(8):
        make_product(category=trees)
    make_product(category=shrubs)

    response = client.get(f"/api/products/{product.slug}/related")

    assert response.status_code == 200
    related = response.json()["products"]
    assert len(related) == 6
    assert str(product.id) not in {item["id"] for item in related}
    assert {item["categoryId"] for item in related} == {str(trees.id)}


def test_related_products_without_category(client, make_product):
    product = make_product()
    assert client.get(f"/api/products/{product.id}/related").json() == {"products": []}
