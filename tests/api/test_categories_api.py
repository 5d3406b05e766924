# tests/api/test_categories_api.py
"""
Public category endpoints: navigation listing and category pages.
"""


def test_list_returns_one_row_per_main_category(client, make_category, make_product):
    """Duplicate names collapse to the row with the most products."""
    make_category("Trees", slug="trees", age_days=10)
    busy_trees = make_category("Trees", slug="trees-2", age_days=1)
    make_product(category=busy_trees)
    make_product(category=busy_trees)
    make_category("Feature Plants")

    response = client.get("/api/categories")

    assert response.status_code == 200
    data = response.json()
    assert [category["name"] for category in data] == ["Trees"]
    assert data[0]["id"] == str(busy_trees.id)
    assert data[0]["_count"] == {"products": 2}
    assert data[0]["slug"] == "trees-2"


def test_list_tie_goes_to_oldest_row(client, make_category):
    oldest = make_category("Shrubs", slug="shrubs", age_days=5)
    make_category("Shrubs", slug="shrubs-2", age_days=1)

    data = client.get("/api/categories").json()

    assert len(data) == 1
    assert data[0]["id"] == str(oldest.id)


def test_list_is_sorted_by_name_and_skips_subcategories(client, make_category):
    trees = make_category("Trees")
    make_category("Climbers")
    make_category("Roses", slug="roses-under-trees", parent=trees)

    data = client.get("/api/categories").json()

    assert [category["name"] for category in data] == ["Climbers", "Trees"]
    assert [child["slug"] for child in data[1]["children"]] == ["roses-under-trees"]


def test_list_children_of_parent(client, make_category):
    trees = make_category("Trees")
    make_category("Evergreen Trees", parent=trees)
    make_category("Deciduous Trees", parent=trees)

    data = client.get("/api/categories", params={"parentId": str(trees.id)}).json()

    assert [category["name"] for category in data] == ["Deciduous Trees", "Evergreen Trees"]
    assert all(category["parentId"] == str(trees.id) for category in data)


def test_count_unions_pointer_and_join_table(client, make_category, make_product):
    """Products reached through either link are counted once."""
    trees = make_category("Trees")
    shrubs = make_category("Shrubs")
    make_product(category=trees)
    make_product(category=shrubs, linked=[trees])
    make_product(category=trees, linked=[trees])

    data = {category["name"]: category for category in client.get("/api/categories").json()}

    assert data["Trees"]["_count"] == {"products": 3}
    assert data["Shrubs"]["_count"] == {"products": 1}


def test_category_page(client, make_category, make_product):
    trees = make_category("Trees")
    older = make_product(name="Acer Rubrum", category=trees, age_minutes=30)
    newer = make_product(name="Betula Pendula", linked=[trees], age_minutes=5)

    response = client.get("/api/categories/trees")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Trees"
    assert data["parent"] is None
    assert data["_count"] == {"products": 2}
    # newest first
    assert [product["id"] for product in data["products"]] == [str(newer.id), str(older.id)]


def test_category_page_respects_limit(client, make_category, make_product):
    trees = make_category("Trees")
    for _ in range(5):
        make_product(category=trees)

    data = client.get("/api/categories/trees", params={"limit": 2}).json()

    assert len(data["products"]) == 2
    assert data["_count"] == {"products": 5}


def test_subcategory_page_is_not_found(client, make_category):
    trees = make_category("Trees")
    make_category("Shrubs", slug="dwarf-shrubs", parent=trees)

    response = client.get("/api/categories/dwarf-shrubs")

    assert response.status_code == 404
    assert response.json() == {"error": "Category not found"}


def test_non_main_category_page_is_not_found(client, make_category):
    make_category("Feature Plants")

    assert client.get("/api/categories/feature-plants").status_code == 404
    assert client.get("/api/categories/does-not-exist").status_code == 404
