"""
HTTP client for downloading images from URLs.
"""

from abc import ABC, abstractmethod
import logging
from typing import Mapping, NamedTuple, Optional

import requests
from requests.exceptions import RequestException

from markdown_image_inliner.exceptions import FetchError

DEFAULT_TIMEOUT = 30

# Some image hosts reject requests that don't look like a browser.
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "image/webp,image/apng,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class FetchedResource(NamedTuple):
    content: bytes
    headers: Mapping[str, str]

    @property
    def content_type(self) -> Optional[str]:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return None


class HttpClient(ABC):
    """Abstract base class for HTTP operations."""

    @abstractmethod
    def fetch(self, url: str) -> FetchedResource:
        """
        Download data from a URL.

        Args:
            url: The URL to download from

        Returns:
            FetchedResource: The body and response headers

        Raises:
            FetchError: On network failure or a non-2xx status
        """


class RequestsClient(HttpClient):
    """Implementation of HttpClient using the requests library."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

    def fetch(self, url: str) -> FetchedResource:
        self.logger.debug(f"Downloading from URL: {url}")
        try:
            response = self.session.get(url, headers=BROWSER_HEADERS, timeout=self.timeout)
        except RequestException as e:
            raise FetchError(f"error downloading {url}: {e}") from e

        content_type = response.headers.get("Content-Type")
        self.logger.debug(
            f"{url} - Status: {response.status_code}, Content-Type: {content_type}, "
            f"Size: {len(response.content)} bytes"
        )

        if not 200 <= response.status_code < 300:
            raise FetchError(f"failed to download {url}: HTTP {response.status_code}")

        return FetchedResource(response.content, response.headers)


def create_http_client(timeout: float = DEFAULT_TIMEOUT) -> HttpClient:
    """
    Factory function to create an HTTP client.

    Returns:
        HttpClient: An instance of an HttpClient implementation
    """
    return RequestsClient(timeout=timeout)
