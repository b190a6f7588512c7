"""API request and response schemas."""

from enum import Enum

from pydantic import BaseModel, Field

from proximity_weather.services.openweather import WeatherSummary


class Units(str, Enum):
    """Preferred display unit."""

    METRIC = "metric"
    IMPERIAL = "imperial"


class WeatherResponse(BaseModel):
    """Weather API response."""

    userId: str = Field(..., description="User the weather was resolved for")  # noqa: N815
    condition: str = Field(..., description="Weather condition label, e.g. Clouds")
    temperatureC: int = Field(..., description="Temperature in Celsius")  # noqa: N815
    temperatureF: int = Field(..., description="Temperature in Fahrenheit")  # noqa: N815
    display: str = Field(..., description="Condition and temperature in the requested unit")

    @classmethod
    def from_summary(cls, user_id: str, summary: WeatherSummary, units: Units) -> "WeatherResponse":
        return cls(
            userId=user_id,
            condition=summary.condition,
            temperatureC=summary.temp_c,
            temperatureF=summary.temp_f,
            display=summary.display(metric=units is Units.METRIC),
        )


class ErrorDetail(BaseModel):
    """Error detail."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Error response."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str = Field(..., description="Readiness status")
    checks: dict[str, str] = Field(default_factory=dict, description="Component checks")
