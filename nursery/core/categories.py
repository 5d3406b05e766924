"""
Catalog category rules.

Only the fifteen Plantmark top-level categories are shown publicly. Subcategories
are not used anywhere.
"""
import re
from typing import Dict, List, Optional
from urllib.parse import urlparse

MAIN_CATEGORIES = (
    "Trees",
    "Shrubs",
    "Grasses",
    "Hedging and Screening",
    "Groundcovers",
    "Climbers",
    "Palms, Ferns & Tropical",
    "Conifers",
    "Roses",
    "Succulents & Cacti",
    "Citrus & Fruit",
    "Herbs & Vegetables",
    "Water Plants",
    "Indoor Plants",
    "Garden Products",
)

UNCATEGORIZED = "Uncategorized"

# Path segment of the partner site that never names a category
NON_CATEGORY_SEGMENT = "plant-finder"

# First URL path segment -> display name
URL_SLUG_TO_CATEGORY: Dict[str, str] = {
    "trees": "Trees",
    "tree": "Trees",
    "shrubs": "Shrubs",
    "shrub": "Shrubs",
    "grasses": "Grasses",
    "grass": "Grasses",
    "ornamental-grasses": "Grasses",
    "hedging": "Hedging and Screening",
    "hedge": "Hedging and Screening",
    "screening": "Hedging and Screening",
    "hedging-and-screening": "Hedging and Screening",
    "groundcovers": "Groundcovers",
    "groundcover": "Groundcovers",
    "ground-covers": "Groundcovers",
    "climbers": "Climbers",
    "climber": "Climbers",
    "vines": "Climbers",
    "vine": "Climbers",
    "palms": "Palms, Ferns & Tropical",
    "palm": "Palms, Ferns & Tropical",
    "ferns": "Palms, Ferns & Tropical",
    "fern": "Palms, Ferns & Tropical",
    "tropical": "Palms, Ferns & Tropical",
    "palms-ferns-and-tropical": "Palms, Ferns & Tropical",
    "conifers": "Conifers",
    "conifer": "Conifers",
    "roses": "Roses",
    "rose": "Roses",
    "succulents": "Succulents & Cacti",
    "succulent": "Succulents & Cacti",
    "cacti": "Succulents & Cacti",
    "cactus": "Succulents & Cacti",
    "succulents-and-cacti": "Succulents & Cacti",
    "citrus": "Citrus & Fruit",
    "fruit": "Citrus & Fruit",
    "fruit-trees": "Citrus & Fruit",
    "citrus-and-fruit": "Citrus & Fruit",
    "herbs": "Herbs & Vegetables",
    "herb": "Herbs & Vegetables",
    "vegetables": "Herbs & Vegetables",
    "vegetable": "Herbs & Vegetables",
    "herbs-and-vegetables": "Herbs & Vegetables",
    "water-plants": "Water Plants",
    "water-plant": "Water Plants",
    "aquatic": "Water Plants",
    "indoor-plants": "Indoor Plants",
    "indoor": "Indoor Plants",
    "houseplants": "Indoor Plants",
    "garden-products": "Garden Products",
    "products": "Garden Products",
}

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_main_category(name: Optional[str]) -> bool:
    return name in MAIN_CATEGORIES


def generate_slug(text: str) -> str:
    """Lowercase, drop punctuation and hyphenate whitespace/underscores"""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def category_slug(name: str) -> str:
    """Slug used for category pages, e.g. 'Succulents & Cacti' -> 'succulents-and-cacti'"""
    return generate_slug(name.replace("&", " and "))


def looks_like_uuid(value: Optional[str]) -> bool:
    return bool(value) and bool(_UUID_RE.match(value))


def title_case_slug(slug: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-") if word)


def normalize_category_name(name: str) -> str:
    """Comparison key that treats '&' and 'and' alike and ignores commas"""
    normalized = name.lower().replace("&", " and ").replace(",", " ")
    return re.sub(r"\s+", " ", normalized).strip()


def source_url_segments(source_url: Optional[str]) -> Optional[list]:
    """Path segments of a partner URL, or None when the URL cannot be parsed"""
    if not source_url:
        return None
    try:
        parsed = urlparse(source_url.strip())
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    return [
        part
        for part in parsed.path.split("/")
        if part and part.lower() != NON_CATEGORY_SEGMENT
    ]


def derive_category_name(source_url: Optional[str]) -> Optional[str]:
    """
    Category display name implied by the first path segment of a partner URL.

    Known segments are looked up in URL_SLUG_TO_CATEGORY; anything else is
    title-cased ('water-features' -> 'Water Features'). Returns None when the URL
    cannot be parsed or has no usable path.
    """
    segments = source_url_segments(source_url)
    if not segments:
        return None
    first = segments[0].lower()
    return URL_SLUG_TO_CATEGORY.get(first) or title_case_slug(first) or None


def canonical_category_name(name: str) -> str:
    """
    Display name for a category label found on the partner site.

    Labels matching a main category (ignoring case, '&' vs 'and' and commas)
    or a known URL slug resolve to that category; anything else keeps its
    text with only the first letter capitalised.
    """
    trimmed = name.strip()
    key = normalize_category_name(trimmed)
    for main in MAIN_CATEGORIES:
        if normalize_category_name(main) == key:
            return main
    mapped = URL_SLUG_TO_CATEGORY.get(generate_slug(trimmed))
    if mapped:
        return mapped
    return trimmed[:1].upper() + trimmed[1:].lower()


def split_category_labels(value: str) -> List[str]:
    """
    Split a comma-separated list of category labels. Consecutive parts that
    together spell a main category ('Palms, Ferns & Tropical') stay one label.
    """
    parts = [part.strip() for part in value.split(",") if part.strip()]
    labels: List[str] = []
    i = 0
    while i < len(parts):
        for j in range(len(parts), i + 1, -1):
            candidate = ", ".join(parts[i:j])
            if canonical_category_name(candidate) in MAIN_CATEGORIES:
                labels.append(candidate)
                i = j
                break
        else:
            labels.append(parts[i])
            i += 1
    return labels
