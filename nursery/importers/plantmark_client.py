# nursery/importers/plantmark_client.py
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

from nursery.core.logging import get_logger
from nursery.importers.base import PlantmarkAPIError
from nursery.importers.http import RateLimiter, create_session, get_with_retries

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 50


class PlantmarkApiClient:
    """
    Client for the partner site's JSON product API.

    The list endpoint is not published; it has to be configured
    (PLANTMARK_PRODUCT_LIST_ENDPOINT) after inspecting the site's network
    traffic. Without it every call raises PlantmarkAPIError and the importer
    falls back to scraping.
    """

    def __init__(
        self,
        base_url: str,
        product_list_endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        proxy_url: Optional[str] = None,
        rate_limit_ms: int = 2000,
        timeout: float = 60,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.product_list_endpoint = product_list_endpoint or None
        self.timeout = timeout
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.session = session or create_session(headers=headers, proxy_url=proxy_url)
        if session is not None:
            self.session.headers.update(headers)
        self.rate_limiter = RateLimiter(rate_limit_ms)

    @classmethod
    def from_settings(cls, settings) -> "PlantmarkApiClient":
        return cls(
            base_url=settings.PLANTMARK_BASE_URL,
            product_list_endpoint=settings.PLANTMARK_PRODUCT_LIST_ENDPOINT,
            api_key=settings.PLANTMARK_API_KEY,
            proxy_url=settings.PLANTMARK_PROXY_URL if settings.PLANTMARK_USE_PROXY else None,
            rate_limit_ms=settings.PLANTMARK_RATE_LIMIT_MS,
            timeout=settings.PLANTMARK_REQUEST_TIMEOUT,
        )

    def get_products(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE, category: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch one page of products.

        Returns the decoded body, expected to look like
        {"products": [...], "total": n, "page": n, "pageSize": n, "hasMore": bool}.
        """
        if not self.product_list_endpoint:
            raise PlantmarkAPIError(
                "Product list endpoint not configured; set PLANTMARK_PRODUCT_LIST_ENDPOINT or use scraping"
            )

        url = urljoin(f"{self.base_url}/", self.product_list_endpoint.lstrip("/"))
        params = {"page": str(page), "pageSize": str(page_size)}
        if category:
            params["category"] = category

        try:
            response = get_with_retries(
                self.session, url, timeout=self.timeout, rate_limiter=self.rate_limiter, params=params
            )
            data = response.json()
        except requests.RequestException as e:
            raise PlantmarkAPIError(f"API request failed: {e}") from e
        except ValueError as e:
            raise PlantmarkAPIError(f"API returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise PlantmarkAPIError("API returned an unexpected payload")
        logger.info(f"Fetched API page {page}: {len(data.get('products') or [])} products")
        return data
