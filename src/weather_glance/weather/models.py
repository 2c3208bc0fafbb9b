"""Data models for the weather glance service."""

from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """Geographic position, immutable once captured."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")


class LocationState(str, Enum):
    """State of the location gate."""
    UNSET = "unset"
    SET = "set"


class HourSample(BaseModel):
    """One hourly forecast point as reported by the provider."""
    model_config = ConfigDict(frozen=True)

    timestamp: AwareDatetime = Field(..., description="Start of the hour")
    temperature_c: float = Field(..., description="Air temperature in Celsius")
    symbol: str = Field(..., description="Provider condition symbol code")


class DaySample(BaseModel):
    """Daily summary derived from the provider timeseries."""
    model_config = ConfigDict(frozen=True)

    day: date = Field(..., description="Local calendar date")
    low_c: float = Field(..., description="Lowest air temperature of the day in Celsius")
    high_c: float = Field(..., description="Highest air temperature of the day in Celsius")
    symbol: str = Field(..., description="Condition symbol closest to midday")


class CurrentConditions(BaseModel):
    """Conditions at the first timeseries instant."""
    timestamp: AwareDatetime
    temperature_c: float
    symbol: str


class Forecast(BaseModel):
    """Everything fetched for one coordinate."""
    coordinate: Coordinate
    place: str = Field(..., description="Human readable place name")
    timezone: str = Field(..., description="Timezone used for local dates and labels")
    current: CurrentConditions
    hourly: List[HourSample] = Field(default_factory=list, description="Hourly timeline, provider order")
    daily: List[DaySample] = Field(default_factory=list, description="Daily summaries")


class LocationUpdate(BaseModel):
    """Body of a pushed location update."""
    positions: List[Coordinate] = Field(default_factory=list, description="Fixes, oldest first")


class LocationStatus(BaseModel):
    """Location gate state response model."""
    state: LocationState
    coordinate: Optional[Coordinate] = None


class HourlyEntry(BaseModel):
    """One column of the hourly forecast scroller."""
    label: str = Field(..., description="Abbreviated hour, e.g. 2PM")
    symbol: str
    temperature_c: float


class ChartBar(BaseModel):
    """One bar of the hourly temperature chart."""
    label: str
    temperature_c: float


class DailyEntry(BaseModel):
    """One row of the ten day forecast list."""
    label: str = Field(..., description="Abbreviated weekday, e.g. MON")
    symbol: str
    low_c: float
    high_c: float


class WeatherView(BaseModel):
    """Weather response model, already shaped for display."""
    status: Literal["ready", "empty"] = Field(..., description="'empty' until a forecast is available")
    place: Optional[str] = None
    timezone: Optional[str] = None
    current_temperature_c: Optional[float] = None
    current_symbol: Optional[str] = None
    hourly: List[HourlyEntry] = Field(default_factory=list)
    chart: List[ChartBar] = Field(default_factory=list)
    daily: List[DailyEntry] = Field(default_factory=list)


class YrTimeseriesEntry(BaseModel):
    """Raw timeseries entry from yr.no API."""
    time: str = Field(..., description="ISO timestamp")
    data: dict = Field(..., description="Weather data")


class YrForecastResponse(BaseModel):
    """Raw response from yr.no Locationforecast API."""
    type: str = Field(..., description="GeoJSON type")
    geometry: dict = Field(..., description="Location geometry")
    properties: dict = Field(..., description="Forecast properties")

