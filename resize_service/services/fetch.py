"""Remote image fetching."""

import logging
from urllib.parse import urlparse

import httpx

from resize_service.config import FETCH_TIMEOUT_SECONDS, FETCH_USER_AGENT, MAX_FILE_SIZE
from resize_service.exceptions import SourceFetchError
from resize_service.utils.validation import validate_file_size

logger = logging.getLogger(__name__)


def validate_source_url(url: str) -> None:
    """Reject anything but absolute http(s) URLs."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise SourceFetchError(f"Invalid URL scheme: {parsed.scheme or '(none)'}")
    if not parsed.netloc:
        raise SourceFetchError("Invalid URL host")


class ImageFetcher:
    """Downloads source images over HTTP with a bounded timeout."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = FETCH_TIMEOUT_SECONDS):
        self._owns_client = client is None
        self._client = client
        self.timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        """HTTP client, created on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={
                    "User-Agent": FETCH_USER_AGENT,
                    "Accept": "image/*,*/*;q=0.8",
                },
            )
        return self._client

    async def fetch(self, url: str) -> bytes:
        """Fetch raw image bytes from ``url``.

        Raises:
            SourceFetchError: on invalid URL, timeout, transport error,
                non-2xx status or an oversized body.
        """
        validate_source_url(url)
        logger.info(f"Fetching: {url[:80]}")
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"Timeout fetching {url[:60]}")
            raise SourceFetchError("Image fetch timed out")
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} fetching {url[:60]}")
            raise SourceFetchError(f"Failed to fetch image: HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Fetch error for {url[:60]}: {e}")
            raise SourceFetchError(f"Failed to fetch image from URL: {e}")

        content = response.content
        if not content:
            raise SourceFetchError("Fetched image is empty")
        if not validate_file_size(content):
            raise SourceFetchError(
                f"Fetched image too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB."
            )
        logger.info(f"Fetched {len(content)} bytes from {url[:60]}")
        return content

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
