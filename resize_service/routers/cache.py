"""Cache management endpoints."""

import logging

from fastapi import APIRouter, Depends

from resize_service.dependencies import get_cache, get_coalescer
from resize_service.models import CacheClearResponse, CacheStatsResponse
from resize_service.services.cache import BoundedCache
from resize_service.services.coalescer import RequestCoalescer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cache")


@router.get("/stats", response_model=CacheStatsResponse, summary="Cache statistics")
def cache_stats(
    cache: BoundedCache = Depends(get_cache),
    coalescer: RequestCoalescer = Depends(get_coalescer),
):
    """Return entry count, byte usage, hit/miss counters and in-flight computations."""
    stats = cache.stats()
    usage = round(stats.total_bytes / stats.max_bytes * 100, 1) if stats.max_bytes > 0 else 0.0
    return CacheStatsResponse(
        entries=stats.entries,
        total_bytes=stats.total_bytes,
        max_bytes=stats.max_bytes,
        usage_percent=usage,
        ttl_seconds=stats.ttl_seconds,
        hits=stats.hits,
        misses=stats.misses,
        evictions=stats.evictions,
        in_flight=coalescer.in_flight,
    )


@router.post("/purge", response_model=CacheClearResponse, summary="Remove expired entries")
def purge_expired(cache: BoundedCache = Depends(get_cache)):
    removed = cache.purge_expired()
    return CacheClearResponse(removed=removed)


@router.delete("", response_model=CacheClearResponse, summary="Clear the cache")
def clear_cache(cache: BoundedCache = Depends(get_cache)):
    logger.info("Clearing cache on request")
    return CacheClearResponse(removed=cache.clear())
