"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from proximity_weather.services.weather import WeatherService


def get_weather_service(request: Request) -> WeatherService:
    """Get the weather service built by the application factory."""
    service: WeatherService = request.app.state.weather_service
    return service


# Type aliases for dependency injection
WeatherServiceDep = Annotated[WeatherService, Depends(get_weather_service)]
