"""Weather service for turning yr.no data into forecasts."""

import asyncio
import logging
import zoneinfo
from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from weather_glance.config import DAILY_FORECAST_DAYS, DISPLAY_TIMEZONE, TARGET_HOUR
from weather_glance.weather.client import YrWeatherClient
from weather_glance.weather.geocoding import GeocodingService
from weather_glance.weather.models import (
    Coordinate, CurrentConditions, DaySample, Forecast, HourSample,
    YrForecastResponse, YrTimeseriesEntry
)

logger = logging.getLogger(__name__)

LOCAL_TIMEZONE = "local"
UNKNOWN_PLACE = "Unknown Location"
UNKNOWN_SYMBOL = "unknown"

# Periods whose summary carries a symbol, most specific first
SYMBOL_PERIODS = ("next_1_hours", "next_6_hours", "next_12_hours")


def display_tzinfo(timezone_str: str) -> Optional[tzinfo]:
    """Resolve a timezone setting to a tzinfo.

    Args:
        timezone_str: "local" or an IANA timezone name

    Returns:
        None for the system local timezone, otherwise a ZoneInfo

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the name is unknown
    """
    if timezone_str == LOCAL_TIMEZONE:
        return None
    return zoneinfo.ZoneInfo(timezone_str)


class WeatherService:
    """Service for loading and shaping forecast data for a coordinate."""

    def __init__(
        self,
        client: Optional[YrWeatherClient] = None,
        geocoding_service: Optional[GeocodingService] = None,
        timezone_setting: str = DISPLAY_TIMEZONE
    ):
        """Initialize the weather service.

        Args:
            client: Weather client instance (creates default if None)
            geocoding_service: Geocoding service instance (creates default if None)
            timezone_setting: "local", "location" or an IANA timezone name
        """
        self.client = client or YrWeatherClient()
        self.geocoding_service = geocoding_service or GeocodingService()
        self.timezone_setting = timezone_setting

    async def load_forecast(self, coordinate: Coordinate) -> Forecast:
        """Fetch and parse the forecast for a coordinate.

        Args:
            coordinate: Position to forecast for

        Returns:
            Forecast with current conditions, hourly timeline and daily summaries

        Raises:
            ValueError: If coordinates are invalid or the data cannot be parsed
            httpx.HTTPError: If API request fails
        """
        lat, lon = coordinate.latitude, coordinate.longitude
        timezone_str = self.resolve_timezone(lat, lon)

        # Nominatim is a blocking client
        place = await asyncio.to_thread(self.geocoding_service.reverse_geocode, lat, lon)
        place = place or UNKNOWN_PLACE

        logger.info(f"Getting forecast for lat={lat}, lon={lon}, place={place}, timezone={timezone_str}")

        raw_data = await self.client.get_weather_forecast(lat, lon)
        return self.parse_forecast(raw_data, coordinate, place, timezone_str)

    def resolve_timezone(self, lat: float, lon: float) -> str:
        """Pick the timezone used for local dates and labels."""
        if self.timezone_setting == "location":
            return self.geocoding_service.get_timezone(lat, lon)
        return self.timezone_setting

    def parse_forecast(
        self,
        raw_data: Dict[str, Any],
        coordinate: Coordinate,
        place: str,
        timezone_str: str
    ) -> Forecast:
        """Build a Forecast from a raw yr.no response.

        Args:
            raw_data: Raw API response from yr.no
            coordinate: Position the forecast was fetched for
            place: Display name of the position
            timezone_str: "local" or an IANA timezone name

        Returns:
            Parsed forecast

        Raises:
            ValueError: If the response holds no usable timeseries data
        """
        try:
            forecast_response = YrForecastResponse(**raw_data)
        except ValidationError as e:
            logger.error(f"Invalid forecast data format: {e}")
            raise ValueError(f"Invalid forecast data format: {e}") from e

        timeseries = forecast_response.properties.get("timeseries", [])
        entries = self._parse_entries(timeseries, display_tzinfo(timezone_str))
        if not entries:
            raise ValueError("No timeseries data in forecast response")

        logger.info(f"Processing {len(entries)} timeseries entries")

        first = entries[0]
        current = CurrentConditions(
            timestamp=first["utc_time"],
            temperature_c=first["temperature_c"],
            symbol=first["symbol"]
        )

        hourly = [
            HourSample(timestamp=entry["utc_time"], temperature_c=entry["temperature_c"], symbol=entry["symbol"])
            for entry in entries
            if entry["hourly"]
        ]

        daily = self._summarize_days(self._group_by_date(entries))

        return Forecast(
            coordinate=coordinate,
            place=place,
            timezone=timezone_str,
            current=current,
            hourly=hourly,
            daily=daily
        )

    def _parse_entries(self, timeseries: List[Dict], tz: Optional[tzinfo]) -> List[Dict]:
        """Flatten timeseries entries into the fields the forecast needs.

        Invalid entries are skipped with a warning.
        """
        parsed = []
        for raw_entry in timeseries:
            try:
                entry = YrTimeseriesEntry(**raw_entry)
                utc_time = datetime.fromisoformat(entry.time.replace("Z", "+00:00"))
                if utc_time.tzinfo is None:
                    raise ValueError(f"Timestamp without UTC offset: {entry.time}")
                parsed.append({
                    "utc_time": utc_time,
                    "local_time": utc_time.astimezone(tz),
                    "temperature_c": float(entry.data["instant"]["details"]["air_temperature"]),
                    "symbol": self._symbol_for(entry.data),
                    "hourly": "next_1_hours" in entry.data,
                })
            except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
                logger.warning(f"Skipping invalid timeseries entry: {e}")
                continue

        return parsed

    @staticmethod
    def _symbol_for(data: Dict) -> str:
        for period in SYMBOL_PERIODS:
            symbol = data.get(period, {}).get("summary", {}).get("symbol_code")
            if symbol:
                return symbol
        return UNKNOWN_SYMBOL

    def _group_by_date(self, entries: List[Dict]) -> Dict[date, List[Dict]]:
        """Group parsed entries by local date."""
        daily_data = defaultdict(list)
        for entry in entries:
            daily_data[entry["local_time"].date()].append(entry)
        return dict(daily_data)

    def _summarize_days(self, daily_data: Dict[date, List[Dict]]) -> List[DaySample]:
        days = []
        for day, entries in sorted(daily_data.items())[:DAILY_FORECAST_DAYS]:
            temperatures = [entry["temperature_c"] for entry in entries]
            days.append(DaySample(
                day=day,
                low_c=min(temperatures),
                high_c=max(temperatures),
                symbol=self._closest_to_target_hour(entries)["symbol"]
            ))

        logger.info(f"Extracted {len(days)} daily summaries")
        return days

    @staticmethod
    def _closest_to_target_hour(entries: List[Dict]) -> Dict:
        """Entry whose local time of day is nearest TARGET_HOUR."""
        target_time = timedelta(hours=TARGET_HOUR)

        def distance(entry: Dict) -> timedelta:
            local_time = entry["local_time"]
            return abs(timedelta(hours=local_time.hour, minutes=local_time.minute) - target_time)

        return min(entries, key=distance)

    async def aclose(self):
        """Close the weather client."""
        if self.client:
            try:
                await self.client.aclose()
            except Exception as e:
                logger.error(f"Error closing weather client: {e}")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
