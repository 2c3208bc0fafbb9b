"""Main FastAPI application for the weather glance service."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from weather_glance.api.endpoints import location_router, router as weather_router
from weather_glance.config import (
    HOST, PORT, DEBUG, LOCATION_SOURCE,
    RATE_LIMIT_ENABLED, RATE_LIMIT_REQUESTS_PER_SECOND
)
from weather_glance.location.gate import LocationGate
from weather_glance.location.providers import LocationProvider, build_location_provider
from weather_glance.logging_config import configure_logging
from weather_glance.middleware.rate_limit import RateLimitMiddleware
from weather_glance.rate_limiter import RateLimiter
from weather_glance.weather.coordinator import ForecastCoordinator, ForecastLoader
from weather_glance.weather.service import WeatherService

logger = logging.getLogger(__name__)


async def start_services(app: FastAPI) -> None:
    """Wire the forecast coordinator to the gate and start location updates."""
    load = app.state.load
    if load is None:
        app.state.weather_service = WeatherService()
        load = app.state.weather_service.load_forecast

    # Subscribe before the gate starts so the first fix cannot be missed
    app.state.coordinator = ForecastCoordinator(app.state.gate, load)
    app.state.coordinator.start()
    await app.state.gate.start()


async def stop_services(app: FastAPI) -> None:
    """Stop location updates and any fetch in flight, then release connections."""
    await app.state.gate.stop()
    await app.state.coordinator.stop()

    weather_service = getattr(app.state, "weather_service", None)
    if weather_service is not None:
        await weather_service.aclose()

    rate_limiter = getattr(app.state, "rate_limiter", None)
    if rate_limiter is not None:
        await rate_limiter.close()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(f"Starting Weather Glance Service with location source '{app.state.location_source}'")
    await start_services(app)
    try:
        yield
    finally:
        logger.info("Shutting down Weather Glance Service")
        await stop_services(app)


def create_app(
    location_provider: Optional[LocationProvider] = None,
    load: Optional[ForecastLoader] = None,
    rate_limit_enabled: bool = RATE_LIMIT_ENABLED,
    rate_limiter: Optional[RateLimiter] = None
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        location_provider: Source of position fixes (LOCATION_SOURCE if None)
        load: Forecast loader (a WeatherService is created on startup if None)
        rate_limit_enabled: Whether to enforce the per-client rate limit
        rate_limiter: Limiter to enforce it with (Redis backed if None)

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Weather Glance Service",
        description="Current, hourly and ten day forecasts for the device location using MET Norway's yr.no API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    provider = location_provider or build_location_provider(LOCATION_SOURCE)
    app.state.location_source = type(provider).__name__
    app.state.gate = LocationGate(provider)
    app.state.load = load

    # Owned by the app so shutdown can close its Redis connection
    if rate_limit_enabled:
        app.state.rate_limiter = rate_limiter or RateLimiter(max_requests=RATE_LIMIT_REQUESTS_PER_SECOND)
    else:
        app.state.rate_limiter = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(
        RateLimitMiddleware,
        calls=RATE_LIMIT_REQUESTS_PER_SECOND,
        enabled=rate_limit_enabled,
        rate_limiter=app.state.rate_limiter
    )

    app.include_router(weather_router)
    app.include_router(location_router)

    @app.get("/api", tags=["root"])
    async def api_info() -> dict:
        """API information endpoint.

        Returns:
            Basic service information
        """
        return {
            "message": "Weather Glance Service",
            "docs": "/docs",
            "redoc": "/redoc",
            "weather": "/weather",
            "location": "/location",
            "health": "/weather/health"
        }

    return app


def main() -> None:
    """Main entry point for the application."""
    configure_logging(debug=DEBUG)
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        create_app(),
        host=HOST,
        port=PORT,
        log_level="info" if not DEBUG else "debug"
    )


if __name__ == "__main__":
    main()
