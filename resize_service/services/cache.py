"""Caching service."""

import hashlib
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from resize_service.config import (
    CACHE_MAX_BYTES,
    CACHE_TTL_SECONDS,
    DEFAULT_HEIGHT,
    DEFAULT_QUALITY,
    DEFAULT_WIDTH,
)
from resize_service.exceptions import CacheInvariantViolation

logger = logging.getLogger(__name__)


def hash_source(content: bytes) -> str:
    """Generate SHA-256 hash used as the source reference of uploaded bytes."""
    return hashlib.sha256(content).hexdigest()


def derive_cache_key(
    source: str,
    width: int | None = None,
    height: int | None = None,
    quality: int | None = None,
) -> str:
    """Build the cache key for a resize request.

    Omitted parameters are replaced by their defaults first, so a request
    without ``quality`` shares its key with one asking for the default quality.
    """
    width = DEFAULT_WIDTH if width is None else width
    height = DEFAULT_HEIGHT if height is None else height
    quality = DEFAULT_QUALITY if quality is None else quality
    combined = f"{source}|{width}|{height}|{quality}"
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    """A processed image held by the cache.

    Entries are immutable; ``size`` and ``etag`` are derived from the payload
    when the entry is finalized and never change afterwards.
    """
    payload: bytes
    content_type: str
    size: int
    etag: str
    inserted_at: float = field(default_factory=time.time)
    original_width: int = 0
    original_height: int = 0

    @classmethod
    def finalize(
        cls,
        payload: bytes,
        content_type: str,
        original_width: int = 0,
        original_height: int = 0,
        inserted_at: float | None = None,
    ) -> "CacheEntry":
        """Create an entry from a computed payload, fingerprinting it once."""
        return cls(
            payload=payload,
            content_type=content_type,
            size=len(payload),
            etag=hashlib.sha256(payload).hexdigest(),
            inserted_at=time.time() if inserted_at is None else inserted_at,
            original_width=original_width,
            original_height=original_height,
        )


@dataclass
class CacheStats:
    entries: int
    total_bytes: int
    max_bytes: int
    ttl_seconds: int
    hits: int
    misses: int
    evictions: int


class BoundedCache:
    """
    Thread-safe in-memory cache bounded by total payload bytes.

    - Entries older than ``ttl_seconds`` are treated as absent and purged when
      they are looked up.
    - When the byte total exceeds ``max_bytes``, entries are evicted in order
      of insertion time (oldest first), not access time. Ties on
      ``inserted_at`` are broken by key.
    - An entry larger than ``max_bytes`` is still accepted. Every other entry
      is evicted and the oversized one stays, leaving the cache above its
      ceiling until the entry expires or a later insert evicts it.

    One lock guards the map and the byte counter. It is never held across I/O
    or image processing.
    """

    def __init__(
        self,
        max_bytes: int = CACHE_MAX_BYTES,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.max_bytes = max_bytes
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._total_bytes = 0
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at > self.ttl_seconds

    def _remove(self, key: str) -> CacheEntry | None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._total_bytes -= entry.size
            if self._total_bytes < 0:
                raise CacheInvariantViolation(
                    f"Cache size accounting went negative ({self._total_bytes} bytes)"
                )
        return entry

    def _evict_excess(self) -> list[str]:
        if self._total_bytes <= self.max_bytes:
            return []
        evicted = []
        ordered = sorted(self._entries.items(), key=lambda item: (item[1].inserted_at, item[0]))
        for key, _ in ordered:
            if self._total_bytes <= self.max_bytes or len(self._entries) <= 1:
                break
            self._remove(key)
            evicted.append(key)
        self._evictions += len(evicted)
        return evicted

    def get(self, key: str) -> CacheEntry | None:
        """Get cached entry if it exists and has not expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_expired(entry, self._clock()):
                self._remove(key)
                entry = None
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
        if entry is None:
            logger.info(f"Cache miss for {key[:8]}...")
        else:
            logger.info(f"Cache hit for {key[:8]}...")
        return entry

    def put(self, key: str, entry: CacheEntry) -> None:
        """Store entry in cache, replacing any previous one, then evict."""
        with self._lock:
            self._remove(key)
            self._entries[key] = entry
            self._total_bytes += entry.size
            evicted = self._evict_excess()
            oversized = self._total_bytes > self.max_bytes
        logger.debug(f"Cached {key[:8]}... ({entry.size} bytes)")
        if evicted:
            logger.info(f"Cache eviction performed: {len(evicted)} entries")
        if oversized:
            logger.warning(
                f"Entry {key[:8]}... ({entry.size} bytes) exceeds cache ceiling "
                f"of {self.max_bytes} bytes"
            )

    def evict_excess(self) -> list[str]:
        """Evict oldest-inserted entries until the cache fits its ceiling.

        Returns the evicted keys in eviction order.
        """
        with self._lock:
            return self._evict_excess()

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._remove(key) is not None

    def purge_expired(self) -> int:
        """Remove all expired entries. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
            for key in expired:
                self._remove(key)
        if expired:
            logger.info(f"Purged {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._total_bytes = 0
        logger.info(f"Cache cleared ({count} entries)")
        return count

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                total_bytes=self._total_bytes,
                max_bytes=self.max_bytes,
                ttl_seconds=self.ttl_seconds,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
