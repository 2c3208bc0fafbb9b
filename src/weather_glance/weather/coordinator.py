"""Keeps the current forecast in step with the location gate."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from weather_glance.location.gate import LocationGate
from weather_glance.weather.models import Coordinate, Forecast

logger = logging.getLogger(__name__)

ForecastLoader = Callable[[Coordinate], Awaitable[Forecast]]


class ForecastCoordinator:
    """Fetches a forecast whenever the gate coordinate changes.

    Only the fetch for the current coordinate may store its result. A fetch
    for a superseded coordinate is cancelled, and if it still completes its
    result is discarded. A failed fetch leaves no forecast; it is not retried.
    All methods must be called on the event loop thread.
    """

    def __init__(self, gate: LocationGate, load: ForecastLoader):
        """Initialize the coordinator.

        Args:
            gate: Location gate to follow
            load: Coroutine function producing a forecast for a coordinate
        """
        self.gate = gate
        self.load = load
        self.forecast: Optional[Forecast] = None
        self._key: Optional[Coordinate] = None
        self._task: Optional[asyncio.Task] = None
        # Every fetch not yet finished, superseded ones included
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> None:
        """Follow the gate, fetching straight away if it already holds a fix."""
        self._unsubscribe = self.gate.subscribe(self.refresh)
        if self.gate.coordinate is not None:
            self.refresh(self.gate.coordinate)

    async def stop(self) -> None:
        """Stop following the gate and cancel every fetch still in flight."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

        self._task = None
        self._key = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def refresh(self, coordinate: Coordinate) -> None:
        """Start fetching for ``coordinate`` unless that fetch is already running."""
        if coordinate == self._key and self._task is not None:
            return

        if self._task is not None and not self._task.done():
            logger.info(f"Cancelling stale forecast fetch for {self._key}")
            self._task.cancel()

        self._key = coordinate
        self._task = asyncio.create_task(self._fetch(coordinate))
        self._tasks.add(self._task)
        self._task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for the current fetch, if any, to finish."""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def _fetch(self, key: Coordinate) -> None:
        try:
            forecast = await self.load(key)
        except Exception as e:
            logger.error(f"Forecast fetch for lat={key.latitude}, lon={key.longitude} failed: {e!r}")
            forecast = None

        if key != self._key:
            logger.info(f"Discarding forecast for stale location {key}")
            return

        self.forecast = forecast
        if forecast is not None:
            logger.info(f"Forecast ready for {forecast.place}: {len(forecast.hourly)} hours, {len(forecast.daily)} days")
