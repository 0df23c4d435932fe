"""Pydantic models for API responses."""

from pydantic import BaseModel


class CacheStatsResponse(BaseModel):
    entries: int
    total_bytes: int
    max_bytes: int
    usage_percent: float
    ttl_seconds: int
    hits: int
    misses: int
    evictions: int
    in_flight: int


class CacheClearResponse(BaseModel):
    success: bool = True
    removed: int


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    status_code: int


class HealthResponse(BaseModel):
    status: str
    service: str
