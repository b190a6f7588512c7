"""Tests for the per-user and shared caches."""

from proximity_weather.services.cache import (
    FRESH_TTL_MS,
    MAX_SHARED_CACHE_ENTRIES,
    CacheEntry,
    SharedCache,
    UserCache,
)
from proximity_weather.services.openweather import WeatherSummary

SUMMARY = WeatherSummary.from_celsius("Clouds", 20)


def make_entry(key: str, now: int = 0, summary: WeatherSummary = SUMMARY) -> CacheEntry:
    return CacheEntry.create(key, 37.7749, -122.4194, summary, now)


class TestCacheEntry:
    """Tests for CacheEntry."""

    def test_expiry_is_fixed_window(self) -> None:
        """Test expires_at is always fetched_at plus the freshness window."""
        for now in (0, 1, 1_700_000_000_000):
            entry = make_entry("9q8yy", now)
            assert entry.fetched_at == now
            assert entry.expires_at - entry.fetched_at == FRESH_TTL_MS == 600_000

    def test_validity_boundary(self) -> None:
        """Test an entry is valid strictly before expires_at."""
        entry = make_entry("9q8yy", 1000)
        assert entry.is_valid(1000 + FRESH_TTL_MS - 1)
        assert not entry.is_valid(1000 + FRESH_TTL_MS)
        assert not entry.is_valid(1000 + FRESH_TTL_MS + 1)


class TestUserCache:
    """Tests for UserCache."""

    def test_put_and_get(self, user_cache: UserCache) -> None:
        """Test basic put and get operations."""
        entry = make_entry("9q8yy")
        user_cache.put("u1", entry)
        assert user_cache.get("u1") is entry

    def test_miss(self, user_cache: UserCache) -> None:
        """Test unknown user returns None."""
        assert user_cache.get("u1") is None

    def test_put_overwrites(self, user_cache: UserCache) -> None:
        """Test a user holds only the most recent entry."""
        user_cache.put("u1", make_entry("9q8yy"))
        newer = make_entry("9q8yz", 5)
        user_cache.put("u1", newer)
        assert user_cache.get("u1") is newer
        assert user_cache.size == 1

    def test_clear(self, user_cache: UserCache) -> None:
        """Test clearing one user leaves others alone."""
        user_cache.put("u1", make_entry("9q8yy"))
        user_cache.put("u2", make_entry("9q8yy"))
        user_cache.clear("u1")
        assert user_cache.get("u1") is None
        assert user_cache.get("u2") is not None

    def test_clear_unknown_user(self, user_cache: UserCache) -> None:
        """Test clearing a user without an entry is a no-op."""
        user_cache.clear("nobody")
        assert user_cache.size == 0

    def test_reset(self, user_cache: UserCache) -> None:
        """Test reset drops every user."""
        user_cache.put("u1", make_entry("9q8yy"))
        user_cache.put("u2", make_entry("9q8yy"))
        user_cache.reset()
        assert user_cache.size == 0


class TestSharedCache:
    """Tests for SharedCache."""

    def test_put_and_get(self, shared_cache: SharedCache) -> None:
        """Test entries are keyed by their bucket."""
        entry = make_entry("9q8yy")
        shared_cache.put(entry)
        assert shared_cache.get("9q8yy") is entry
        assert shared_cache.contains("9q8yy")
        assert shared_cache.get("9q8yz") is None

    def test_overwrite_keeps_single_slot(self, shared_cache: SharedCache) -> None:
        """Test a second write to a bucket replaces the first."""
        shared_cache.put(make_entry("9q8yy", 0))
        newer = make_entry("9q8yy", 10, WeatherSummary.from_celsius("Rain", 25))
        shared_cache.put(newer)
        assert shared_cache.size == 1
        assert shared_cache.get("9q8yy") is newer

    def test_default_capacity(self, shared_cache: SharedCache) -> None:
        """Test capacity evicts oldest-written entries and never exceeds the bound."""
        for i in range(MAX_SHARED_CACHE_ENTRIES + 5):
            shared_cache.put(make_entry(f"k{i:04d}"))
            assert shared_cache.size <= MAX_SHARED_CACHE_ENTRIES

        assert shared_cache.size == MAX_SHARED_CACHE_ENTRIES
        for i in range(5):
            assert not shared_cache.contains(f"k{i:04d}")
        assert shared_cache.contains("k0005")
        assert shared_cache.contains(f"k{MAX_SHARED_CACHE_ENTRIES + 4:04d}")

    def test_overwrite_moves_to_newest(self) -> None:
        """Test rewriting a key protects it from the next eviction."""
        cache = SharedCache(max_entries=3)
        for key in ("a", "b", "c"):
            cache.put(make_entry(key))
        cache.put(make_entry("a", 1))
        cache.put(make_entry("d"))

        assert not cache.contains("b")
        assert cache.contains("a")
        assert cache.contains("c")
        assert cache.contains("d")

    def test_reads_do_not_refresh_order(self) -> None:
        """Test eviction follows write order even for frequently read keys."""
        cache = SharedCache(max_entries=3)
        for key in ("a", "b", "c"):
            cache.put(make_entry(key))
        for _ in range(3):
            assert cache.get("a") is not None
        cache.put(make_entry("d"))

        assert not cache.contains("a")
        assert cache.size == 3

    def test_eviction_ignores_freshness(self) -> None:
        """Test a fresh entry is evicted while an expired one is kept."""
        cache = SharedCache(max_entries=2)
        cache.put(make_entry("stale", now=0))
        cache.put(make_entry("fresh", now=10 * FRESH_TTL_MS))
        cache.put(make_entry("stale", now=0))
        cache.put(make_entry("newest", now=10 * FRESH_TTL_MS))

        assert not cache.contains("fresh")
        assert cache.contains("stale")

    def test_reset(self, shared_cache: SharedCache) -> None:
        """Test reset empties the cache and it keeps working."""
        shared_cache.put(make_entry("9q8yy"))
        shared_cache.reset()
        assert shared_cache.size == 0
        shared_cache.put(make_entry("9q8yz"))
        assert shared_cache.size == 1

    def test_is_healthy(self, shared_cache: SharedCache) -> None:
        """Test health check."""
        assert shared_cache.is_healthy() is True
