"""Configuration settings for the weather glance service."""

import os
from typing import Final, Optional
from dotenv import load_dotenv

load_dotenv()

# API Configuration
YR_API_BASE_URL: Final[str] = "https://api.met.no/weatherapi/locationforecast/2.0/compact"
USER_AGENT: Final[str] = os.getenv("USER_AGENT", "WeatherGlance/0.1 (user@example.com)")
GEOCODING_USER_AGENT: Final[str] = os.getenv("GEOCODING_USER_AGENT", "weather-glance-geocoder/0.1")

# No timeout by default: a slow provider just means no forecast yet
_yr_timeout = os.getenv("YR_TIMEOUT_SECONDS")
YR_TIMEOUT_SECONDS: Optional[float] = float(_yr_timeout) if _yr_timeout else None

# Default location (New York)
DEFAULT_LAT: Final[float] = float(os.getenv("DEFAULT_LAT", "40.7128"))
DEFAULT_LON: Final[float] = float(os.getenv("DEFAULT_LON", "-74.0060"))
DEFAULT_CITY: Final[str] = os.getenv("DEFAULT_CITY", "New York")

# Location source: "static", "ip" or "push"
LOCATION_SOURCE: str = os.getenv("LOCATION_SOURCE", "static").lower()
LOCATION_POLL_SECONDS: float = float(os.getenv("LOCATION_POLL_SECONDS", "30"))
IP_LOCATION_URL: str = os.getenv("IP_LOCATION_URL", "http://ip-api.com/json/")

# Display timezone: "local" (system zone), "location" (zone at the fix) or an IANA name
DISPLAY_TIMEZONE: str = os.getenv("DISPLAY_TIMEZONE", "local")

# Forecast shaping
FORECAST_WINDOW_HOURS: Final[int] = 24
CHART_HOURS: Final[int] = 10
DAILY_FORECAST_DAYS: Final[int] = 10
TARGET_HOUR: int = int(os.getenv("TARGET_HOUR", "12"))  # Hour whose symbol represents the day

# Server configuration
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

# Rate limiting configuration
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
RATE_LIMIT_REQUESTS_PER_SECOND: int = int(os.getenv("RATE_LIMIT_REQUESTS_PER_SECOND", "20"))
RATE_LIMIT_REDIS_KEY_PREFIX: str = os.getenv("RATE_LIMIT_REDIS_KEY_PREFIX", "weather_glance_rate_limit")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
