"""Forecast window selection and display label formatting."""

from datetime import datetime, tzinfo
from itertools import islice
from typing import Iterable, List, Optional, Sequence

from weather_glance.config import CHART_HOURS, FORECAST_WINDOW_HOURS
from weather_glance.weather.models import (
    ChartBar, DailyEntry, DaySample, HourlyEntry, HourSample
)

# Fixed English labels, independent of the process locale
WEEKDAY_ABBREVIATIONS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


def select_window(
    timeline: Sequence[HourSample],
    now: datetime,
    limit: int = FORECAST_WINDOW_HOURS
) -> List[HourSample]:
    """Select the upcoming part of a forecast timeline.

    Keeps entries whose timestamp is not before ``now`` and takes the first
    ``limit`` of them in timeline order. The timeline is not sorted: the
    provider returns it ascending and "first" means first in that order.

    Args:
        timeline: Hourly samples in provider order
        now: Reference instant (timezone aware)
        limit: Maximum number of entries to return

    Returns:
        Up to ``limit`` samples, possibly empty
    """
    upcoming = (
        sample for sample in timeline
        if (sample.timestamp - now).total_seconds() >= 0
    )
    return list(islice(upcoming, limit))


def format_abbreviated_hour(timestamp: datetime, tz: Optional[tzinfo] = None) -> str:
    """Format a timestamp as a 12-hour label without minutes, e.g. ``2PM``.

    Args:
        timestamp: Instant to format
        tz: Display timezone; the system local timezone when None

    Returns:
        Hour label such as ``12AM`` or ``2PM``
    """
    local = timestamp.astimezone(tz)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}{suffix}"


def format_abbreviated_weekday(timestamp: datetime, tz: Optional[tzinfo] = None) -> str:
    """Format a timestamp as a three letter weekday, e.g. ``MON``.

    Args:
        timestamp: Instant to format
        tz: Display timezone; the system local timezone when None

    Returns:
        Upper-case weekday abbreviation
    """
    return WEEKDAY_ABBREVIATIONS[timestamp.astimezone(tz).weekday()]


def hourly_entries(window: Iterable[HourSample], tz: Optional[tzinfo] = None) -> List[HourlyEntry]:
    return [
        HourlyEntry(
            label=format_abbreviated_hour(sample.timestamp, tz),
            symbol=sample.symbol,
            temperature_c=sample.temperature_c
        )
        for sample in window
    ]


def chart_series(
    window: Sequence[HourSample],
    tz: Optional[tzinfo] = None,
    limit: int = CHART_HOURS
) -> List[ChartBar]:
    """Temperature bars for the first ``limit`` hours of the window."""
    return [
        ChartBar(label=format_abbreviated_hour(sample.timestamp, tz), temperature_c=sample.temperature_c)
        for sample in window[:limit]
    ]


def daily_entries(days: Iterable[DaySample]) -> List[DailyEntry]:
    """Rows for the ten day list.

    Days are already local calendar dates, so the weekday needs no timezone.
    """
    return [
        DailyEntry(
            label=WEEKDAY_ABBREVIATIONS[day.day.weekday()],
            symbol=day.symbol,
            low_c=day.low_c,
            high_c=day.high_c
        )
        for day in days
    ]
