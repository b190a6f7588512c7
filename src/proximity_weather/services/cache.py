"""Per-user and shared proximity caches for weather summaries."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from cachetools import FIFOCache
from prometheus_client import Counter, Gauge

if TYPE_CHECKING:
    from proximity_weather.services.openweather import WeatherSummary

logger = structlog.get_logger()

PROXIMITY_KM = 5.0
FRESH_TTL_MS = 10 * 60 * 1000
MAX_SHARED_CACHE_ENTRIES = 1000

# Metrics
shared_cache_size_gauge = Gauge("shared_cache_size", "Current number of shared cache entries")
shared_cache_evictions = Counter(
    "shared_cache_evictions_total",
    "Shared cache entries evicted for capacity",
)


@dataclass(frozen=True)
class CacheEntry:
    """A resolved weather summary pinned to the coordinate it was fetched for."""

    bucket_key: str
    lat: float
    lon: float
    summary: WeatherSummary
    fetched_at: int
    expires_at: int

    @classmethod
    def create(
        cls,
        bucket_key: str,
        lat: float,
        lon: float,
        summary: WeatherSummary,
        now: int,
    ) -> CacheEntry:
        """Build an entry fetched at ``now`` (epoch ms) with the fixed freshness window."""
        return cls(
            bucket_key=bucket_key,
            lat=lat,
            lon=lon,
            summary=summary,
            fetched_at=now,
            expires_at=now + FRESH_TTL_MS,
        )

    def is_valid(self, now: int) -> bool:
        return self.expires_at > now


class UserCache:
    """Single most-recent entry per user."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(user_id)

    def put(self, user_id: str, entry: CacheEntry) -> None:
        """Overwrite the user's slot unconditionally."""
        with self._lock:
            self._entries[user_id] = entry

    def clear(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)


class _WriteOrderCache(FIFOCache):
    """FIFO cache that reports capacity evictions.

    Overwriting a key moves it to the newest end; reads never reorder.
    """

    def popitem(self) -> tuple[str, CacheEntry]:
        key, entry = super().popitem()
        shared_cache_evictions.inc()
        logger.debug("Evicted shared cache entry", bucket_key=key, expires_at=entry.expires_at)
        return key, entry


class SharedCache:
    """Bucket-keyed cache shared by all users, bounded with write-order eviction.

    Eviction is capacity-only and never looks at ``expires_at``: a fresh
    entry can be evicted and an expired one can linger until overwritten.
    """

    def __init__(self, max_entries: int = MAX_SHARED_CACHE_ENTRIES) -> None:
        self._cache: FIFOCache[str, CacheEntry] = _WriteOrderCache(maxsize=max_entries)
        self._lock = threading.Lock()

    def get(self, bucket_key: str) -> CacheEntry | None:
        with self._lock:
            entry: CacheEntry | None = self._cache.get(bucket_key)
            return entry

    def put(self, entry: CacheEntry) -> None:
        """Insert or overwrite the slot for ``entry.bucket_key``."""
        with self._lock:
            self._cache[entry.bucket_key] = entry
            shared_cache_size_gauge.set(len(self._cache))

    def contains(self, bucket_key: str) -> bool:
        with self._lock:
            return bucket_key in self._cache

    def reset(self) -> None:
        with self._lock:
            self._cache = _WriteOrderCache(maxsize=self._cache.maxsize)
            shared_cache_size_gauge.set(0)

    @property
    def size(self) -> int:
        """Return current cache size."""
        with self._lock:
            return len(self._cache)

    def is_healthy(self) -> bool:
        """Check if cache is operational."""
        with self._lock:
            return self._cache is not None and len(self._cache) <= self._cache.maxsize
