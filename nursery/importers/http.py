# nursery/importers/http.py
"""Shared HTTP plumbing for the partner-site client and scraper."""
import random
import threading
import time
from typing import Dict, Optional

import requests

from nursery.core.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; NurseryBot/1.0)"
MAX_RETRIES = 3
RETRY_BACKOFF_BASE = 2.0
MAX_RETRY_BACKOFF = 30.0
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


def create_session(headers: Optional[Dict[str, str]] = None, proxy_url: Optional[str] = None) -> requests.Session:
    """requests Session with keep-alive, our User-Agent and an optional proxy"""
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Accept-Encoding": "gzip, deflate"})
    if headers:
        session.headers.update(headers)
    if proxy_url:
        session.proxies.update({"http": proxy_url, "https": proxy_url})
    return session


class RateLimiter:
    """Enforces a minimum delay between consecutive requests"""

    def __init__(self, min_interval_ms: int, clock=time.monotonic, sleep=time.sleep):
        self.min_interval = max(min_interval_ms, 0) / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            now = self._clock()
            if self._last_request is not None:
                elapsed = now - self._last_request
                if elapsed < self.min_interval:
                    self._sleep(self.min_interval - elapsed)
            self._last_request = self._clock()


def get_with_retries(
    session: requests.Session,
    url: str,
    timeout: float,
    rate_limiter: Optional[RateLimiter] = None,
    params: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """
    GET with exponential backoff on throttling, server errors, timeouts and
    dropped connections. Other failures raise immediately.
    """
    for attempt in range(MAX_RETRIES + 1):
        if rate_limiter:
            rate_limiter.wait()
        try:
            response = session.get(url, params=params, timeout=timeout)
            if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                backoff = min(RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF) + random.uniform(0, 1)
                logger.warning(
                    f"Received {response.status_code} from {url}, backing off {backoff:.1f}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                time.sleep(backoff)
                continue
            response.raise_for_status()
            return response
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            if attempt >= MAX_RETRIES:
                logger.error(f"Giving up on {url}: {e}")
                raise
            backoff = min(RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF) + random.uniform(0, 1)
            logger.warning(f"{type(e).__name__} fetching {url}, backing off {backoff:.1f}s")
            time.sleep(backoff)

    # the loop either returns or raises
    raise requests.exceptions.RetryError(f"Failed to fetch {url} after {MAX_RETRIES} retries")
