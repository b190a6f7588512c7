"""Test fixtures."""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from proximity_weather.config import Settings
from proximity_weather.main import create_app
from proximity_weather.services.cache import SharedCache, UserCache
from proximity_weather.services.openweather import WeatherSummary
from proximity_weather.services.weather import WeatherService

SF_LAT = 37.7749
SF_LON = -122.4194


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class StubWeatherClient:
    """Stands in for OpenWeatherClient, replaying canned results in order.

    The last result repeats once the list is exhausted. Exceptions in the
    list are raised instead of returned.
    """

    def __init__(
        self,
        results: list[WeatherSummary | Exception],
        configured: bool = True,
    ) -> None:
        self._results = results
        self.calls: list[tuple[float, float]] = []
        self.is_configured = configured

    async def get_current_weather(self, lat: float, lon: float) -> WeatherSummary:
        result = self._results[min(len(self.calls), len(self._results) - 1)]
        self.calls.append((lat, lon))
        # Yield like a real request would
        await asyncio.sleep(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        open_weather_api_key="test-key",
        upstream_timeout_seconds=1.0,
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub_client() -> StubWeatherClient:
    """Stub upstream answering Clouds 20C, then Rain 25C, then Snow 30C."""
    return StubWeatherClient(
        [
            WeatherSummary.from_celsius("Clouds", 20),
            WeatherSummary.from_celsius("Rain", 25),
            WeatherSummary.from_celsius("Snow", 30),
        ]
    )


@pytest.fixture
def user_cache() -> UserCache:
    return UserCache()


@pytest.fixture
def shared_cache() -> SharedCache:
    return SharedCache()


@pytest.fixture
def weather_service(
    stub_client: StubWeatherClient,
    user_cache: UserCache,
    shared_cache: SharedCache,
    clock: FakeClock,
) -> WeatherService:
    """Create weather service backed by the stub upstream and fake clock."""
    return WeatherService(stub_client, user_cache, shared_cache, clock)


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Create test application with its own caches."""
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)
