# nursery/importers/plantmark_scraper.py
"""HTML scraping of the partner site's plant-finder listing and product pages."""
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode, urljoin

import requests
from bs4 import BeautifulSoup

from nursery.core.categories import split_category_labels, title_case_slug
from nursery.core.logging import get_logger
from nursery.importers.http import RateLimiter, create_session, get_with_retries

logger = get_logger(__name__)

PRODUCT_BOX_SELECTOR = "div[data-productid], .product-item[data-productid]"
NEXT_PAGE_SELECTOR = ".pagination .next, [data-next-page]"
PRICE_SELECTOR = ".price, [class*='price'], [data-price]"

_PRICE_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")


def parse_price(text: Optional[str]) -> Optional[float]:
    """'$1,249.50 ea' -> 1249.5; None when no positive number is present"""
    if not text:
        return None
    match = _PRICE_RE.search(text.replace(",", ""))
    if not match:
        return None
    value = float(match.group(0))
    return value if value > 0 else None


def _absolute(url: Optional[str], base_url: str) -> Optional[str]:
    if not url or url.startswith("data:"):
        return None
    return urljoin(f"{base_url}/", url)


def _image_url(element, base_url: str) -> Optional[str]:
    for img in element.select("img"):
        src = img.get("src") or img.get("data-src")
        if not src or src.startswith("data:image") or "placeholder" in src:
            continue
        return _absolute(src, base_url)
    return None


def _text(element, selector: str) -> Optional[str]:
    found = element.select_one(selector)
    if not found:
        return None
    text = found.get_text(" ", strip=True)
    return text or None


def parse_listing(html: str, base_url: str) -> Tuple[List[Dict[str, Any]], bool]:
    """
    Extract product boxes from a plant-finder listing page.

    Returns camelCase product records and whether a next page is advertised.
    """
    soup = BeautifulSoup(html, "html.parser")
    products: List[Dict[str, Any]] = []

    for box in soup.select(PRODUCT_BOX_SELECTOR):
        product_id = box.get("data-productid")
        link = box.select_one("a[href]")
        if not product_id or not link:
            continue

        href = link.get("href", "")
        name = link.get_text(" ", strip=True) or link.get("title") or ""
        name = re.sub(r"^Show details for\s*", "", name, flags=re.IGNORECASE).strip()
        if not name:
            name = title_case_slug(href.rstrip("/").split("/")[-1])
        if not name:
            continue

        record: Dict[str, Any] = {
            "id": product_id,
            "sourceId": product_id,
            "name": name,
            "sourceUrl": _absolute(href, base_url),
        }
        optional = {
            "imageUrl": _image_url(box, base_url),
            "price": parse_price(_text(box, PRICE_SELECTOR)),
            "botanicalName": _text(box, "[class*='botanical'], [data-botanical]"),
            "commonName": _text(box, "[class*='common'], [data-common]"),
            "description": _text(box, ".description, [class*='desc'], p, .detail"),
        }
        record.update({key: value for key, value in optional.items() if value is not None})
        products.append(record)

    next_button = soup.select_one(NEXT_PAGE_SELECTOR)
    has_more = next_button is not None and not next_button.has_attr("disabled")
    return products, has_more


def _parse_variants(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    variants: List[Dict[str, Any]] = []
    for row in soup.select(".size.combo, .location-box.combo, table tbody tr"):
        size = row.get("data-size") or _text(row, ".size, td:nth-of-type(2)") or row.get_text(" ", strip=True)
        price = parse_price(row.get("data-price") or _text(row, PRICE_SELECTOR))
        if not size or price is None:
            continue
        variant: Dict[str, Any] = {"size": size, "price": price}
        stock_text = row.get_text(" ", strip=True).lower()
        if "out of stock" in stock_text or "sold out" in stock_text:
            variant["availability"] = "OUT_OF_STOCK"
        else:
            variant["availability"] = "IN_STOCK"
        variants.append(variant)
    return variants


def parse_product_detail(html: str, url: str, base_url: str) -> Optional[Dict[str, Any]]:
    """
    Extract the detail fields of a product page: names, description, images,
    attribute pairs (plant type becomes the category) and size/price variants.
    """
    soup = BeautifulSoup(html, "html.parser")
    name = _text(soup, "h1, .product-title, [data-product-name], .product-name")
    if not name:
        return None

    record: Dict[str, Any] = {"name": name, "sourceUrl": url}
    id_el = soup.select_one("[data-product-id], [data-productid]")
    if id_el:
        record["id"] = id_el.get("data-product-id") or id_el.get("data-productid")

    specifications: Dict[str, str] = {}
    for prop in soup.select("[itemprop]"):
        key = prop.get("itemprop")
        value = prop.get_text(" ", strip=True)
        if key and value:
            specifications[key] = value
    for dl in soup.select("dl"):
        for term, definition in zip(dl.select("dt"), dl.select("dd")):
            key = term.get_text(" ", strip=True).rstrip(":")
            value = definition.get_text(" ", strip=True)
            if key and value:
                specifications.setdefault(key, value)

    if specifications.get("botanical-name"):
        record["botanicalName"] = specifications["botanical-name"]
    if specifications.get("common-names"):
        record["commonName"] = specifications["common-names"]
    plant_type = specifications.get("plant-type")
    if plant_type:
        record["categories"] = split_category_labels(plant_type)
    if specifications:
        record["specifications"] = specifications

    description = _text(soup, ".product-description, .description, [data-description], .product-detail p")
    if description:
        record["description"] = description

    images = []
    for img in soup.select(".product-images img, .product-gallery img, .cloudzoom-gallery img, .picture-img"):
        src = _absolute(img.get("data-full-image-url") or img.get("src") or img.get("data-src"), base_url)
        if src and src not in images and "placeholder" not in src:
            images.append(src)
    if images:
        record["images"] = images
        record["imageUrl"] = images[0]

    variants = _parse_variants(soup)
    if variants:
        record["variants"] = variants
        record["availability"] = (
            "IN_STOCK" if any(v["availability"] == "IN_STOCK" for v in variants) else "OUT_OF_STOCK"
        )
    else:
        price = parse_price(_text(soup, PRICE_SELECTOR))
        if price is not None:
            record["price"] = price

    care = _text(soup, ".care-instructions, .care, .maintenance")
    if care:
        record["careInstructions"] = care
    planting = _text(soup, ".planting-instructions, .planting, .how-to-plant")
    if planting:
        record["plantingInstructions"] = planting
    return record


class PlantmarkScraper:
    """Scrapes the plant-finder listing page by page, politely rate limited"""

    def __init__(
        self,
        base_url: str,
        proxy_url: Optional[str] = None,
        rate_limit_ms: int = 2000,
        timeout: float = 60,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or create_session(
            headers={"Accept": "text/html,application/xhtml+xml"}, proxy_url=proxy_url
        )
        self.rate_limiter = RateLimiter(rate_limit_ms)

    @classmethod
    def from_settings(cls, settings) -> "PlantmarkScraper":
        return cls(
            base_url=settings.PLANTMARK_BASE_URL,
            proxy_url=settings.PLANTMARK_PROXY_URL if settings.PLANTMARK_USE_PROXY else None,
            rate_limit_ms=settings.PLANTMARK_RATE_LIMIT_MS,
            timeout=settings.PLANTMARK_REQUEST_TIMEOUT,
        )

    def build_listing_url(self, page: int = 1, category: Optional[str] = None) -> str:
        url = f"{self.base_url}/plant-finder"
        params = {}
        if category:
            params["category"] = category
        if page > 1:
            params["page"] = str(page)
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    def _fetch(self, url: str) -> str:
        response = get_with_retries(self.session, url, timeout=self.timeout, rate_limiter=self.rate_limiter)
        return response.text

    def scrape_products(self, page: int = 1, category: Optional[str] = None) -> Tuple[List[Dict[str, Any]], bool]:
        url = self.build_listing_url(page, category)
        products, has_more = parse_listing(self._fetch(url), self.base_url)
        logger.info(f"Scraped listing page {page}: {len(products)} products (more: {has_more})")
        return products, has_more

    def scrape_product_detail(self, source_url: str) -> Optional[Dict[str, Any]]:
        url = _absolute(source_url, self.base_url)
        return parse_product_detail(self._fetch(url), url, self.base_url)

    def close(self) -> None:
        self.session.close()
