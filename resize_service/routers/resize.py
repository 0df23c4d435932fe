"""Resize API endpoints."""

import logging
import time

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import Response

from resize_service.config import MAX_FILE_SIZE, RATE_LIMIT_RESIZE
from resize_service.dependencies import get_coalescer, get_fetcher, limiter
from resize_service.exceptions import DecodeError, ProcessingError, SourceFetchError
from resize_service.services.cache import CacheEntry
from resize_service.services.coalescer import CacheStatus, RequestCoalescer
from resize_service.services.fetch import ImageFetcher
from resize_service.services.resize import ResizeRequest, resize_image
from resize_service.utils.validation import (
    get_supported_formats,
    is_supported_upload,
    validate_file_size,
)

logger = logging.getLogger(__name__)
router = APIRouter()

RESIZE_RESPONSES = {
    200: {"description": "Resized image", "content": {"image/png": {}, "image/jpeg": {}}},
    304: {"description": "Not modified (ETag matched If-None-Match)"},
    400: {"description": "No image, unreachable source or undecodable image"},
    413: {"description": "File too large (max 10MB)"},
    415: {"description": "Unsupported file type"},
    429: {"description": "Rate limit exceeded"},
    500: {"description": "Resize or encode failed"},
}


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    """Check an If-None-Match header against an entity tag."""
    if not if_none_match:
        return False
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate.strip('"') == etag:
            return True
    return False


def build_response(request: Request, entry: CacheEntry, cache_status: CacheStatus) -> Response:
    """Render a cache entry with its validators and caching headers."""
    ttl = request.app.state.cache.ttl_seconds
    headers = {
        "ETag": f'"{entry.etag}"',
        "Cache-Control": f"public, max-age={ttl}",
        "X-Cache": cache_status.value,
        "X-Original-Width": str(entry.original_width),
        "X-Original-Height": str(entry.original_height),
    }
    if etag_matches(request.headers.get("if-none-match"), entry.etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    return Response(content=entry.payload, media_type=entry.content_type, headers=headers)


async def run_resize(
    request: Request,
    resize_request: ResizeRequest,
    coalescer: RequestCoalescer,
    fetcher: ImageFetcher,
) -> Response:
    start_time = time.time()
    try:
        entry, cache_status = await resize_image(resize_request, coalescer, fetcher)
    except SourceFetchError as e:
        logger.warning(f"Source fetch failed: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DecodeError as e:
        logger.warning(f"Image decode failed: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ProcessingError as e:
        logger.error(f"Image processing failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    processing_time_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"Request completed in {processing_time_ms}ms "
        f"({cache_status.value}, {entry.size} bytes)"
    )
    return build_response(request, entry, cache_status)


@router.get("/resize", summary="Resize a remote image", responses=RESIZE_RESPONSES)
@limiter.limit(RATE_LIMIT_RESIZE)
async def resize_remote(
    request: Request,
    url: str = Query(..., description="URL of the source image"),
    width: int | None = Query(None, ge=0, description="Target width; 0 keeps aspect ratio"),
    height: int | None = Query(None, ge=0, description="Target height; 0 keeps aspect ratio"),
    quality: int | None = Query(None, ge=1, le=100, description="JPEG quality (default 80)"),
    coalescer: RequestCoalescer = Depends(get_coalescer),
    fetcher: ImageFetcher = Depends(get_fetcher),
):
    """
    Fetch an image by URL, resize it and return the result.

    - **url**: Source image URL (http or https)
    - **width** / **height**: Target dimensions
    - **quality**: JPEG quality, used when the source is a JPEG

    Results are cached; the response carries `ETag` and `Cache-Control`.
    """
    logger.info(f"Resize request for URL: {url[:80]}")
    resize_request = ResizeRequest(url=url, width=width, height=height, quality=quality)
    return await run_resize(request, resize_request, coalescer, fetcher)


@router.post("/resize", summary="Resize an uploaded or remote image", responses=RESIZE_RESPONSES)
@limiter.limit(RATE_LIMIT_RESIZE)
async def resize_upload(
    request: Request,
    image: UploadFile | None = File(None, description="Image file (max 10MB)"),
    url: str | None = Query(None, description="URL of the source image; overrides the upload"),
    width: int | None = Query(None, ge=0, description="Target width; 0 keeps aspect ratio"),
    height: int | None = Query(None, ge=0, description="Target height; 0 keeps aspect ratio"),
    quality: int | None = Query(None, ge=1, le=100, description="JPEG quality (default 80)"),
    coalescer: RequestCoalescer = Depends(get_coalescer),
    fetcher: ImageFetcher = Depends(get_fetcher),
):
    """
    Resize an uploaded image, or a remote one when `url` is given.
    """
    if url is not None:
        resize_request = ResizeRequest(url=url, width=width, height=height, quality=quality)
        return await run_resize(request, resize_request, coalescer, fetcher)

    if image is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image provided")

    logger.info(f"Processing upload: {image.filename}")
    if not is_supported_upload(image.content_type, image.filename):
        logger.warning(f"Invalid file type: {image.content_type}")
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type. Supported formats: {get_supported_formats()}"
        )

    content = await image.read()

    if not validate_file_size(content):
        logger.warning(f"File too large: {len(content)} bytes")
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB."
        )

    if len(content) == 0:
        logger.warning("Empty file uploaded")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file uploaded.")

    resize_request = ResizeRequest(content=content, width=width, height=height, quality=quality)
    return await run_resize(request, resize_request, coalescer, fetcher)
