"""Reverse geocoding and timezone lookup for position fixes."""

import logging
from functools import lru_cache
from typing import Optional

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable
from geopy.geocoders import Nominatim
from timezonefinder import TimezoneFinder

from weather_glance.config import GEOCODING_USER_AGENT

logger = logging.getLogger(__name__)


class GeocodingService:
    """Service for place names and timezone detection.

    Lookups never raise: a missing place name is None and a missing
    timezone is UTC.
    """

    def __init__(self, geolocator: Optional[Nominatim] = None, tf: Optional[TimezoneFinder] = None):
        """Initialize the geocoding service.

        Args:
            geolocator: geopy geocoder (Nominatim by default)
            tf: TimezoneFinder instance (loaded in memory by default)
        """
        # Reuse instances for performance
        self.geolocator = geolocator or Nominatim(user_agent=GEOCODING_USER_AGENT)
        self.tf = tf or TimezoneFinder(in_memory=True)
        logger.info("GeocodingService initialized with timezonefinder and Nominatim")

    @lru_cache(maxsize=256)
    def reverse_geocode(self, lat: float, lon: float) -> Optional[str]:
        """Convert coordinates to a place name.

        Args:
            lat: Latitude
            lon: Longitude

        Returns:
            City, town or similar name if found, None otherwise
        """
        lat_rounded = round(lat, 4)
        lon_rounded = round(lon, 4)

        try:
            logger.info(f"Reverse geocoding coordinates: ({lat_rounded}, {lon_rounded})")
            location = self.geolocator.reverse((lat_rounded, lon_rounded))
        except (GeocoderUnavailable, GeocoderTimedOut, GeocoderServiceError) as e:
            logger.warning(f"Reverse geocoding service unavailable for ({lat}, {lon}): {e}")
            return None

        address = location.raw.get("address") if location else None
        if address:
            place = (
                address.get("city") or
                address.get("town") or
                address.get("village") or
                address.get("municipality") or
                address.get("county")
            )
            if place:
                logger.info(f"Reverse geocoded ({lat_rounded}, {lon_rounded}) to '{place}'")
                return place

        logger.info(f"No place found for coordinates ({lat_rounded}, {lon_rounded})")
        return None

    def get_timezone(self, lat: float, lon: float) -> str:
        """Get timezone for coordinates.

        Args:
            lat: Latitude
            lon: Longitude

        Returns:
            Timezone string (e.g., "America/New_York") or "UTC" if not found
        """
        timezone = self.tf.timezone_at(lng=lon, lat=lat)
        if timezone:
            logger.info(f"Found timezone '{timezone}' for ({lat}, {lon})")
            return timezone

        logger.warning(f"No timezone found for ({lat}, {lon}), defaulting to UTC")
        return "UTC"
