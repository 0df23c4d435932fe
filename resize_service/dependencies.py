"""Shared FastAPI dependencies."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from resize_service.services.cache import BoundedCache
from resize_service.services.coalescer import RequestCoalescer
from resize_service.services.fetch import ImageFetcher

limiter = Limiter(key_func=get_remote_address)


def get_cache(request: Request) -> BoundedCache:
    return request.app.state.cache


def get_coalescer(request: Request) -> RequestCoalescer:
    return request.app.state.coalescer


def get_fetcher(request: Request) -> ImageFetcher:
    return request.app.state.fetcher
