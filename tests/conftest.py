"""Shared fixtures: yr.no payload builders and canned forecasts."""

from datetime import datetime, timedelta, timezone

import pytest

from weather_glance.weather.models import (
    Coordinate, CurrentConditions, DaySample, Forecast, HourSample
)

NEW_YORK = Coordinate(latitude=40.7128, longitude=-74.006)
OSLO = Coordinate(latitude=59.9139, longitude=10.7522)


@pytest.fixture
def new_york() -> Coordinate:
    return NEW_YORK


@pytest.fixture
def oslo() -> Coordinate:
    return OSLO


def _yr_entry(time: datetime, temperature: float, symbol: str = "clearsky_day", period: str = "next_1_hours") -> dict:
    data = {"instant": {"details": {"air_temperature": temperature, "wind_speed": 3.1}}}
    if period:
        data[period] = {"summary": {"symbol_code": symbol}, "details": {"precipitation_amount": 0.0}}
    return {"time": time.strftime("%Y-%m-%dT%H:%M:%SZ"), "data": data}


@pytest.fixture
def yr_entry():
    """Build one yr.no timeseries entry."""
    return _yr_entry


@pytest.fixture
def yr_payload():
    """Wrap timeseries entries in a yr.no compact response."""
    def build(entries: list) -> dict:
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [-74.006, 40.7128, 10]},
            "properties": {
                "meta": {"updated_at": "2026-10-12T00:00:00Z", "units": {"air_temperature": "celsius"}},
                "timeseries": entries,
            },
        }
    return build


@pytest.fixture
def make_forecast():
    """Build a Forecast whose hourly timeline starts a few hours before now."""
    def build(coordinate: Coordinate = NEW_YORK, place: str = "New York", hours_before: int = 3, hours: int = 48) -> Forecast:
        now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        hourly = [
            HourSample(timestamp=now + timedelta(hours=offset), temperature_c=10.0 + offset % 5, symbol="cloudy")
            for offset in range(-hours_before, hours - hours_before)
        ]
        daily = [
            DaySample(day=(now + timedelta(days=offset)).date(), low_c=5.0, high_c=15.0, symbol="rain")
            for offset in range(10)
        ]
        return Forecast(
            coordinate=coordinate,
            place=place,
            timezone="UTC",
            current=CurrentConditions(timestamp=now, temperature_c=12.5, symbol="cloudy"),
            hourly=hourly,
            daily=daily
        )
    return build
