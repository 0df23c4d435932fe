"""FastAPI application initialization."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from resize_service.config import (
    CACHE_MAX_BYTES,
    CACHE_TTL_SECONDS,
    CORS_ORIGINS,
    HOST,
    LOG_LEVEL,
    PORT,
)
from resize_service.dependencies import limiter
from resize_service.models import ErrorResponse, HealthResponse
from resize_service.routers import cache as cache_router
from resize_service.routers import resize
from resize_service.services.cache import BoundedCache
from resize_service.services.coalescer import RequestCoalescer
from resize_service.services.fetch import ImageFetcher

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DESCRIPTION = """
## Overview
Resizes and recompresses images fetched by URL or uploaded as multipart files.

## Features
- **Sources:** `?url=` (GET or POST) or multipart upload (POST)
- **Output:** JPEG sources stay JPEG at the requested quality, others become PNG
- **Caching:** In-memory, size-bounded (150MiB), 1 hour TTL, oldest-inserted evicted first
- **Coalescing:** Concurrent requests for the same image share one computation
- **Conditional requests:** `ETag` / `If-None-Match`
"""


def create_app(
    cache: BoundedCache | None = None,
    fetcher: ImageFetcher | None = None,
) -> FastAPI:
    """Build the application around one shared cache instance."""
    if cache is None:
        cache = BoundedCache(max_bytes=CACHE_MAX_BYTES, ttl_seconds=CACHE_TTL_SECONDS)
    if fetcher is None:
        fetcher = ImageFetcher()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Cache ready: max {cache.max_bytes} bytes, ttl {cache.ttl_seconds}s"
        )
        yield
        await fetcher.aclose()
        logger.info(f"Shutting down with {len(cache)} cached entries")

    app = FastAPI(
        title="Image Resize API",
        description=DESCRIPTION,
        version="1.0.0",
        license_info={
            "name": "MIT",
        },
        lifespan=lifespan,
    )

    app.state.cache = cache
    app.state.coalescer = RequestCoalescer(cache)
    app.state.fetcher = fetcher

    # Attach limiter
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=["ETag", "X-Cache", "X-Original-Width", "X-Original-Height"],
    )

    app.include_router(resize.router, tags=["Resize"])
    app.include_router(cache_router.router, tags=["Cache"])

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning("Rate limit exceeded")
        return JSONResponse(
            status_code=429,
            content=ErrorResponse(error="Rate limit exceeded.", status_code=429).model_dump()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail), status_code=exc.status_code).model_dump()
        )

    @app.get("/", tags=["Health"], response_model=HealthResponse)
    def health_check():
        """
        Health check endpoint.

        Returns the service status.
        """
        return HealthResponse(status="healthy", service="Image Resize API")

    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run("resize_service.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
