import logging
import os
from typing import Dict, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests  # type: ignore[import-untyped]

from ccl_pipeline.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml,application/pdf;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
}


class HttpFetcher:
    """Single-attempt GETs with a timeout. Retry policy belongs to the caller."""

    def __init__(self, timeout: float = 15, session: Optional[requests.Session] = None,
                 headers: Optional[Dict[str, str]] = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}

    def _get(self, url: str) -> requests.Response:
        try:
            response = self.session.get(url, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}", url=url) from e
        if response.status_code != 200:
            raise FetchError(f"HTTP {response.status_code} from {url}", url=url, status=response.status_code)
        return response

    def get_text(self, url: str) -> str:
        response = self._get(url)
        logger.info(f"Fetched {url} ({len(response.text)} chars)")
        return response.text

    def get_bytes(self, url: str) -> bytes:
        if url.startswith("file://"):
            return _read_file_url(url)
        response = self._get(url)
        logger.info(f"Fetched {url} ({len(response.content)} bytes)")
        return response.content


def _read_file_url(url: str) -> bytes:
    path = url2pathname(urlparse(url).path)
    if not os.path.exists(path):
        raise FetchError(f"No file at {url}", url=url, status=404)
    with open(path, 'rb') as f:
        return f.read()


__all__ = ['HttpFetcher', 'DEFAULT_HEADERS']
