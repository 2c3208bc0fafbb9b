"""API endpoints for the weather glance service."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status

from weather_glance.config import (
    CHART_HOURS, DEFAULT_CITY, DEFAULT_LAT, DEFAULT_LON, DISPLAY_TIMEZONE,
    FORECAST_WINDOW_HOURS, LOCATION_SOURCE
)
from weather_glance.location.gate import LocationGate
from weather_glance.location.providers import PushLocationProvider
from weather_glance.weather.coordinator import ForecastCoordinator
from weather_glance.weather.models import (
    LocationStatus, LocationUpdate, WeatherView
)
from weather_glance.weather.service import display_tzinfo
from weather_glance.weather.window import (
    chart_series, daily_entries, hourly_entries, select_window
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/weather", tags=["weather"])
location_router = APIRouter(prefix="/location", tags=["location"])


def get_gate(request: Request) -> LocationGate:
    """Dependency to get the application's location gate."""
    return request.app.state.gate


def get_coordinator(request: Request) -> ForecastCoordinator:
    """Dependency to get the application's forecast coordinator."""
    return request.app.state.coordinator


@router.get("/", response_model=WeatherView)
async def get_weather(coordinator: ForecastCoordinator = Depends(get_coordinator)) -> WeatherView:
    """Get the forecast shaped for display.

    The hourly window is computed at request time, so it always starts at
    the current hour.

    Returns:
        WeatherView with status 'ready', or status 'empty' while no
        forecast is available
    """
    forecast = coordinator.forecast
    if forecast is None:
        return WeatherView(status="empty")

    tz = display_tzinfo(forecast.timezone)
    window = select_window(forecast.hourly, datetime.now(timezone.utc), FORECAST_WINDOW_HOURS)

    return WeatherView(
        status="ready",
        place=forecast.place,
        timezone=forecast.timezone,
        current_temperature_c=forecast.current.temperature_c,
        current_symbol=forecast.current.symbol,
        hourly=hourly_entries(window, tz),
        chart=chart_series(window, tz, CHART_HOURS),
        daily=daily_entries(forecast.daily)
    )


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Health status response
    """
    return {"status": "healthy", "service": "weather-glance"}


@router.get("/info")
async def get_service_info(request: Request) -> dict:
    """Get service information.

    Returns:
        Service information including location source and defaults
    """
    return {
        "service": "Weather Glance Service",
        "version": "0.1.0",
        "location_source": getattr(request.app.state, "location_source", LOCATION_SOURCE),
        "default_location": {
            "city": DEFAULT_CITY,
            "latitude": DEFAULT_LAT,
            "longitude": DEFAULT_LON
        },
        "display_timezone": DISPLAY_TIMEZONE,
        "features": [
            "Current temperature",
            f"Next {FORECAST_WINDOW_HOURS} hours forecast",
            f"{CHART_HOURS} hour temperature chart series",
            "Ten day forecast"
        ],
        "data_source": "MET Norway yr.no API"
    }


@location_router.get("", response_model=LocationStatus)
async def get_location(gate: LocationGate = Depends(get_gate)) -> LocationStatus:
    """Get the location gate state."""
    return LocationStatus(state=gate.state, coordinate=gate.coordinate)


@location_router.post(
    "",
    response_model=LocationStatus,
    status_code=status.HTTP_202_ACCEPTED
)
async def push_location(
    update: LocationUpdate,
    gate: LocationGate = Depends(get_gate)
) -> LocationStatus:
    """Push position fixes to the location gate.

    Only the first update carrying a position is adopted; later ones are
    accepted and ignored.

    Raises:
        HTTPException: If the service does not take pushed locations
    """
    if not isinstance(gate.provider, PushLocationProvider):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Location is not pushed in this deployment. Set LOCATION_SOURCE=push."
        )

    logger.info(f"Received location update with {len(update.positions)} positions")
    gate.provider.push(update.positions)
    return LocationStatus(state=gate.state, coordinate=gate.coordinate)
