"""Resize service: ties key derivation, fetching, processing and caching together."""

import asyncio
import logging
from dataclasses import dataclass

from resize_service.config import DEFAULT_HEIGHT, DEFAULT_QUALITY, DEFAULT_WIDTH
from resize_service.services.cache import CacheEntry, derive_cache_key, hash_source
from resize_service.services.coalescer import CacheStatus, RequestCoalescer
from resize_service.services.fetch import ImageFetcher, validate_source_url
from resize_service.utils.image import process_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResizeRequest:
    """A resize request; a remote ``url`` takes precedence over uploaded ``content``."""
    url: str | None = None
    content: bytes | None = None
    width: int | None = None
    height: int | None = None
    quality: int | None = None

    @property
    def source_ref(self) -> str:
        """Source reference, namespaced so a URL never collides with an upload hash."""
        if self.url is not None:
            return f"url:{self.url}"
        return f"upload:{hash_source(self.content or b'')}"

    @property
    def cache_key(self) -> str:
        return derive_cache_key(self.source_ref, self.width, self.height, self.quality)


async def render(request: ResizeRequest, fetcher: ImageFetcher) -> CacheEntry:
    """Produce a fresh cache entry for ``request``. Never touches the cache."""
    if request.url is not None:
        raw = await fetcher.fetch(request.url)
    else:
        raw = request.content or b""

    processed = await asyncio.to_thread(
        process_image,
        raw,
        DEFAULT_WIDTH if request.width is None else request.width,
        DEFAULT_HEIGHT if request.height is None else request.height,
        DEFAULT_QUALITY if request.quality is None else request.quality,
    )
    return CacheEntry.finalize(
        processed.payload,
        processed.content_type,
        original_width=processed.original_width,
        original_height=processed.original_height,
    )


async def resize_image(
    request: ResizeRequest,
    coalescer: RequestCoalescer,
    fetcher: ImageFetcher,
) -> tuple[CacheEntry, CacheStatus]:
    """Return the resized image for ``request``, from cache when possible."""
    if request.url is not None:
        validate_source_url(request.url)
    return await coalescer.resolve(request.cache_key, lambda: render(request, fetcher))
