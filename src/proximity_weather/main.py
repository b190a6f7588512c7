"""Application entry point."""

import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from proximity_weather import __version__
from proximity_weather.api.routes import api_router, health_router
from proximity_weather.config import Settings, get_settings
from proximity_weather.middleware.logging import LoggingMiddleware, configure_logging
from proximity_weather.services.openweather import OpenWeatherClient
from proximity_weather.services.weather import WeatherService


def create_app(
    settings: Settings | None = None,
    weather_service: WeatherService | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    The application owns a single ``WeatherService`` (and with it both
    caches) for its lifetime; pass one in to share or stub it.
    """
    settings = settings if settings is not None else get_settings()

    # Configure logging
    configure_logging(settings)

    # Create FastAPI app
    app = FastAPI(
        title="Proximity Weather API",
        description="Proximity-aware caching proxy for OpenWeather current conditions",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if weather_service is None:
        weather_service = WeatherService(OpenWeatherClient(settings))
    app.state.weather_service = weather_service

    # Add middleware
    app.add_middleware(LoggingMiddleware)

    # Include routers
    app.include_router(api_router)
    app.include_router(health_router)

    # Mount Prometheus metrics endpoint
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

    return app


def run() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "proximity_weather.main:create_app",
        factory=True,
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
