"""Weather service orchestrating the proximity caches and upstream client."""

import time
from collections.abc import Callable
from typing import Any, Protocol

import structlog
from prometheus_client import Counter

from proximity_weather.services.cache import (
    PROXIMITY_KM,
    CacheEntry,
    SharedCache,
    UserCache,
)
from proximity_weather.services.geo import bucket_key, haversine_km, neighbor_keys
from proximity_weather.services.openweather import OpenWeatherError, WeatherSummary

logger = structlog.get_logger()

# Metrics
cache_hits = Counter("weather_cache_hits_total", "Total cache hits", ["tier"])
cache_misses = Counter("weather_cache_misses_total", "Lookups that fell through to upstream")


class LogSink(Protocol):
    """The logging calls the service makes on a caller-supplied logger."""

    def debug(self, event: str, **kw: Any) -> Any: ...

    def info(self, event: str, **kw: Any) -> Any: ...

    def warning(self, event: str, **kw: Any) -> Any: ...

    def error(self, event: str, **kw: Any) -> Any: ...


class WeatherClient(Protocol):
    """Upstream source of current conditions, e.g. OpenWeatherClient."""

    @property
    def is_configured(self) -> bool: ...

    async def get_current_weather(self, lat: float, lon: float) -> WeatherSummary: ...


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class WeatherService:
    """Resolve weather for a user's position with as few upstream calls as possible.

    Lookup order: the user's own last result, the shared entry for the
    position's bucket, the shared entries of the 8 neighboring buckets, and
    finally the upstream API. A cached entry is only reused while fresh and
    within ``PROXIMITY_KM`` of the requested coordinate.
    """

    def __init__(
        self,
        client: WeatherClient,
        user_cache: UserCache | None = None,
        shared_cache: SharedCache | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize service with client, caches and a millisecond clock."""
        self._client = client
        self._user_cache = user_cache if user_cache is not None else UserCache()
        self._shared_cache = shared_cache if shared_cache is not None else SharedCache()
        self._clock = clock

    async def get_weather(
        self,
        log: LogSink | None,
        user_id: str,
        lat: float,
        lon: float,
    ) -> WeatherSummary | None:
        """Get current weather for a user at coordinates.

        Args:
            log: Logger for this call; falls back to the module logger
            user_id: Caller's user identifier
            lat: Latitude
            lon: Longitude

        Returns:
            Weather summary, or None when no data is available (missing API
            key or upstream failure; the reason is only logged)
        """
        log = log if log is not None else logger
        now = self._clock()

        # 1) User's own last result, tested against its stored coordinate
        entry = self._user_cache.get(user_id)
        if entry is not None and self._usable(entry, lat, lon, now):
            cache_hits.labels(tier="user").inc()
            log.debug("User cache hit", user_id=user_id, bucket_key=entry.bucket_key)
            return entry.summary

        # 2) Shared entry for the position's own bucket
        key = bucket_key(lat, lon)
        entry = self._shared_cache.get(key)
        if entry is not None and self._usable(entry, lat, lon, now):
            cache_hits.labels(tier="shared").inc()
            log.debug("Shared cache hit", user_id=user_id, bucket_key=key)
            self._user_cache.put(user_id, entry)
            return entry.summary

        # 3) Neighboring buckets, first usable one wins
        for neighbor in neighbor_keys(key):
            entry = self._shared_cache.get(neighbor)
            if entry is not None and self._usable(entry, lat, lon, now):
                cache_hits.labels(tier="neighbor").inc()
                log.debug(
                    "Shared cache hit in neighbor bucket", user_id=user_id, bucket_key=neighbor
                )
                self._user_cache.put(user_id, entry)
                return entry.summary

        # 4) Upstream
        cache_misses.inc()
        if not self._client.is_configured:
            log.error("OpenWeather API key is not configured", user_id=user_id)
            return None

        log.debug(
            "Cache miss, fetching from upstream",
            user_id=user_id,
            lat=lat,
            lon=lon,
            bucket_key=key,
        )

        try:
            summary = await self._client.get_current_weather(lat, lon)
        except OpenWeatherError as e:
            log.error(
                "Weather request failed",
                user_id=user_id,
                lat=lat,
                lon=lon,
                status_code=getattr(e, "status_code", None),
                error=str(e),
            )
            return None

        entry = CacheEntry.create(key, lat, lon, summary, now)
        self._shared_cache.put(entry)
        self._user_cache.put(user_id, entry)
        log.info(
            "Weather fetched from upstream",
            user_id=user_id,
            bucket_key=key,
            condition=summary.condition,
            temp_c=summary.temp_c,
        )
        return summary

    def clear_user(self, user_id: str) -> None:
        """Forget a user's cached result, e.g. on logout."""
        self._user_cache.clear(user_id)

    def reset(self) -> None:
        """Drop all cached state (for testing)."""
        self._user_cache.reset()
        self._shared_cache.reset()

    @property
    def shared_cache_size(self) -> int:
        return self._shared_cache.size

    def has_shared_for(self, lat: float, lon: float) -> bool:
        """Whether the shared cache holds an entry for the coordinate's bucket."""
        return self._shared_cache.contains(bucket_key(lat, lon))

    def is_healthy(self) -> bool:
        return self._shared_cache.is_healthy()

    @property
    def upstream_configured(self) -> bool:
        return self._client.is_configured

    @staticmethod
    def _usable(entry: CacheEntry, lat: float, lon: float, now: int) -> bool:
        return entry.is_valid(now) and haversine_km(entry.lat, entry.lon, lat, lon) <= PROXIMITY_KM
