"""OpenWeather One Call API client."""

import math
from dataclasses import dataclass
from typing import Any

import httpx
from prometheus_client import Counter, Histogram

from proximity_weather.config import Settings


class OpenWeatherError(Exception):
    """Base exception for OpenWeather client errors."""


class OpenWeatherTimeoutError(OpenWeatherError):
    """Raised when upstream request times out."""


class OpenWeatherAPIError(OpenWeatherError):
    """Raised when upstream returns an error."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


# Metrics
upstream_requests = Counter(
    "upstream_requests_total",
    "Total upstream API requests",
    ["status"],
)
upstream_duration = Histogram(
    "upstream_request_duration_seconds",
    "Upstream request duration in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0],
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return math.floor(value + 0.5)


def _finite_number(value: Any) -> float | None:
    """Return value as a finite float, or None for non-numbers, NaN and infinities."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class WeatherSummary:
    """Current condition with Celsius as the canonical unit."""

    condition: str
    temp_c: int
    temp_f: int

    @classmethod
    def from_celsius(cls, condition: str, temp_c: float) -> "WeatherSummary":
        """Build a summary from a raw Celsius reading.

        Fahrenheit is derived from the already rounded Celsius value, so
        20.6 C becomes 21 C and 70 F (not the 69 F a direct conversion gives).
        """
        rounded_c = round_half_up(temp_c)
        return cls(
            condition=condition,
            temp_c=rounded_c,
            temp_f=round_half_up(rounded_c * 9 / 5 + 32),
        )

    def display(self, metric: bool = True) -> str:
        """Format as ``"<condition>, <temp><unit>"`` in the preferred unit."""
        if metric:
            return f"{self.condition}, {self.temp_c}°C"
        return f"{self.condition}, {self.temp_f}°F"


class OpenWeatherClient:
    """HTTP client for the OpenWeather One Call current conditions."""

    def __init__(self, settings: Settings) -> None:
        """Initialize client with settings."""
        self._base_url = settings.upstream_url
        self._timeout = settings.upstream_timeout_seconds
        self._api_key = settings.open_weather_api_key

    @property
    def is_configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self._api_key)

    async def get_current_weather(self, lat: float, lon: float) -> WeatherSummary:
        """Fetch current conditions in metric units for coordinates.

        Args:
            lat: Latitude (-90 to 90)
            lon: Longitude (-180 to 180)

        Returns:
            Weather summary with Celsius and derived Fahrenheit

        Raises:
            OpenWeatherTimeoutError: If request times out
            OpenWeatherAPIError: If upstream returns an error
            OpenWeatherError: On transport failure, missing key or malformed payload
        """
        if not self._api_key:
            raise OpenWeatherError("OpenWeather API key is not configured")

        params: dict[str, str | float] = {
            "lat": lat,
            "lon": lon,
            "exclude": "minutely,hourly,daily,alerts",
            "units": "metric",
            "appid": self._api_key,
        }

        with upstream_duration.time():
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(self._base_url, params=params)

                if response.status_code != 200:
                    upstream_requests.labels(status="error").inc()
                    raise OpenWeatherAPIError(
                        f"OpenWeather API returned {response.status_code}: {response.text}",
                        response.status_code,
                    )

                try:
                    data = response.json()
                except ValueError as e:
                    upstream_requests.labels(status="error").inc()
                    raise OpenWeatherError("OpenWeather API returned invalid JSON") from e

                summary = self._parse_response(data)
                upstream_requests.labels(status="success").inc()
                return summary

            except httpx.TimeoutException as e:
                upstream_requests.labels(status="timeout").inc()
                raise OpenWeatherTimeoutError(
                    f"OpenWeather API request timed out after {self._timeout}s"
                ) from e

            except httpx.RequestError as e:
                upstream_requests.labels(status="error").inc()
                raise OpenWeatherError(f"OpenWeather API request failed: {e}") from e

            except (httpx.HTTPError, httpx.InvalidURL) as e:
                upstream_requests.labels(status="error").inc()
                raise OpenWeatherError(f"OpenWeather API request could not be sent: {e}") from e

    def _parse_response(self, data: Any) -> WeatherSummary:
        """Parse One Call API response.

        Raises:
            OpenWeatherError: If required fields are missing from response
        """
        current = data.get("current") if isinstance(data, dict) else None
        if not isinstance(current, dict):
            upstream_requests.labels(status="malformed").inc()
            raise OpenWeatherError("Missing 'current' field in response")

        temp = _finite_number(current.get("temp"))
        conditions = current.get("weather")
        if (
            temp is None
            or not isinstance(conditions, list)
            or not conditions
            or not isinstance(conditions[0], dict)
            or not isinstance(conditions[0].get("main"), str)
        ):
            upstream_requests.labels(status="malformed").inc()
            raise OpenWeatherError("Missing required weather data in 'current' field")

        return WeatherSummary.from_celsius(conditions[0]["main"], temp)
