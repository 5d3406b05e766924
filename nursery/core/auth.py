"""API key authentication for the admin API."""
import secrets
from typing import Optional, Tuple

from fastapi import Request
import logging

from nursery.core.errors import UnauthorizedError

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/api/admin"
API_KEY_HEADER = "X-API-Key"

# Admin paths containing one of these markers are served without a key
PUBLIC_PATH_MARKERS: Tuple[str, ...] = (
    "/public",
    "/start",
    "/fix-categories",
    "/fix-image-paths",
    "/fix-product-categories",
    "/re-scrape-categories",
    "/rescrape-products",
)


class AdminAPIKeyGate:
    """
    The one place admin access is decided.

    Every admin router is mounted with this gate as a dependency, so the
    public-path bypass and the key comparison cannot drift apart.
    """

    def __init__(self, public_markers: Tuple[str, ...] = PUBLIC_PATH_MARKERS):
        self.public_markers = public_markers

    def is_public_path(self, path: str) -> bool:
        # markers match whole path segments so a slug like "publicity" is not public
        segments = set(path.strip("/").split("/"))
        return any(marker.strip("/") in segments for marker in self.public_markers)

    def requires_key(self, path: str) -> bool:
        return path.startswith(ADMIN_PREFIX) and not self.is_public_path(path)

    def is_valid_key(self, api_key: Optional[str], expected_key: Optional[str]) -> bool:
        if not expected_key:
            logger.warning("ADMIN_API_KEY not configured")
            return False
        if not api_key:
            return False
        return secrets.compare_digest(api_key.encode(), expected_key.encode())

    async def __call__(self, request: Request) -> None:
        path = request.url.path
        if not self.requires_key(path):
            return

        settings = request.app.state.settings
        api_key = request.headers.get(API_KEY_HEADER)
        if not self.is_valid_key(api_key, settings.ADMIN_API_KEY):
            client = request.client.host if request.client else "unknown"
            logger.warning(f"Rejected admin request to {path} from {client}")
            raise UnauthorizedError()


admin_api_key_gate = AdminAPIKeyGate()
