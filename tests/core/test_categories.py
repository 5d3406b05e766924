# tests/core/test_categories.py
import pytest

from nursery.core.categories import (
    MAIN_CATEGORIES,
    canonical_category_name,
    category_slug,
    derive_category_name,
    generate_slug,
    is_main_category,
    looks_like_uuid,
    normalize_category_name,
    source_url_segments,
    split_category_labels,
)


def test_main_category_allow_list():
    """The public allow-list has the fifteen partner top-level categories."""
    assert len(MAIN_CATEGORIES) == 15
    assert is_main_category("Succulents & Cacti")
    assert not is_main_category("Succulents and Cacti")
    assert not is_main_category(None)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Lilly Pilly 'Resilience'", "lilly-pilly-resilience"),
        ("  Acer   palmatum_Bloodgood ", "acer-palmatum-bloodgood"),
        ("--Grevillea--", "grevillea"),
    ],
)
def test_generate_slug(text, expected):
    assert generate_slug(text) == expected


def test_category_slug_spells_out_ampersand():
    assert category_slug("Succulents & Cacti") == "succulents-and-cacti"
    assert category_slug("Palms, Ferns & Tropical") == "palms-ferns-and-tropical"
    assert category_slug("Trees") == "trees"


def test_normalize_category_name_treats_and_like_ampersand():
    assert normalize_category_name("Succulents and Cacti") == normalize_category_name("Succulents & Cacti")
    assert normalize_category_name("Palms Ferns and Tropical") == normalize_category_name("Palms, Ferns & Tropical")


def test_source_url_segments_skip_plant_finder():
    assert source_url_segments("https://www.plantmark.com.au/plant-finder/trees/acer-rubrum") == [
        "trees",
        "acer-rubrum",
    ]
    assert source_url_segments("not a url") is None
    assert source_url_segments(None) is None


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://www.plantmark.com.au/trees/acer-rubrum", "Trees"),
        ("https://www.plantmark.com.au/cactus/golden-barrel", "Succulents & Cacti"),
        ("https://www.plantmark.com.au/water-features/bubbler", "Water Features"),
        ("https://www.plantmark.com.au/", None),
        ("garbage", None),
    ],
)
def test_derive_category_name(url, expected):
    assert derive_category_name(url) == expected


def test_canonical_category_name_maps_labels_onto_main_categories():
    """Partner labels resolve to the main category spelling when they match one."""
    assert canonical_category_name("succulents and cacti") == "Succulents & Cacti"
    assert canonical_category_name("  TREES ") == "Trees"
    assert canonical_category_name("Fern") == "Palms, Ferns & Tropical"
    assert canonical_category_name("feature PLANTS") == "Feature plants"


def test_looks_like_uuid():
    assert looks_like_uuid("3f2b8c1e-9d4a-4b6e-8f00-123456789abc")
    assert not looks_like_uuid("acer-rubrum")
    assert not looks_like_uuid(None)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Trees, Feature Plants", ["Trees", "Feature Plants"]),
        ("Palms, Ferns & Tropical", ["Palms, Ferns & Tropical"]),
        ("palms, ferns and tropical, Trees", ["palms, ferns and tropical", "Trees"]),
        ("Shrubs, Palms, Ferns & Tropical", ["Shrubs", "Palms, Ferns & Tropical"]),
        (" Roses ,, ", ["Roses"]),
    ],
)
def test_split_category_labels(value, expected):
    assert split_category_labels(value) == expected
