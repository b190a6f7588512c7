"""API route definitions."""

from typing import Annotated

import structlog
from fastapi import APIRouter, HTTPException, Query, Response, status

from proximity_weather.api.dependencies import WeatherServiceDep
from proximity_weather.api.schemas import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ReadinessResponse,
    Units,
    WeatherResponse,
)

logger = structlog.get_logger()

# API router for weather endpoints
api_router = APIRouter(prefix="/api/v1", tags=["weather"])

# Health router for health checks
health_router = APIRouter(prefix="/health", tags=["health"])


@api_router.get(
    "/weather",
    response_model=WeatherResponse,
    responses={
        503: {"model": ErrorResponse, "description": "No weather data available"},
    },
)
async def get_weather(
    weather_service: WeatherServiceDep,
    user_id: Annotated[str, Query(min_length=1, description="User identifier")],
    lat: Annotated[float, Query(ge=-90, le=90, description="Latitude")],
    lon: Annotated[float, Query(ge=-180, le=180, description="Longitude")],
    units: Annotated[Units, Query(description="Display unit")] = Units.METRIC,
) -> WeatherResponse:
    """Get current weather for a user's position.

    Served from the user's last result or a nearby user's result when one
    within 5 km is less than 10 minutes old; otherwise fetched upstream.
    """
    summary = await weather_service.get_weather(logger.bind(user_id=user_id), user_id, lat, lon)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ErrorResponse(
                error=ErrorDetail(
                    code="WEATHER_UNAVAILABLE",
                    message="No weather data available for this location",
                )
            ).model_dump(),
        )

    return WeatherResponse.from_summary(user_id, summary, units)


@api_router.delete(
    "/users/{user_id}/weather",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def clear_user_weather(weather_service: WeatherServiceDep, user_id: str) -> Response:
    """Forget a user's cached weather, e.g. when their session ends."""
    weather_service.clear_user(user_id)
    logger.info("Cleared user weather cache", user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@health_router.get("/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe - checks if the service is running."""
    return HealthResponse(status="ok")


@health_router.get("/ready", response_model=ReadinessResponse)
async def readiness(weather_service: WeatherServiceDep) -> ReadinessResponse:
    """Readiness probe - checks if the service is ready to accept traffic.

    A missing API key is reported but does not fail the probe: lookups
    still answer, just without data.
    """
    cache_status = "ok" if weather_service.is_healthy() else "unhealthy"
    upstream_status = "ok" if weather_service.upstream_configured else "unconfigured"

    overall_status = "ok" if cache_status == "ok" else "unhealthy"

    response = ReadinessResponse(
        status=overall_status,
        checks={"cache": cache_status, "upstream": upstream_status},
    )

    if overall_status != "ok":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=response.model_dump(),
        )

    return response
