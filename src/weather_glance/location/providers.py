"""Location providers that report position fixes to a listener."""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from weather_glance.config import (
    DEFAULT_LAT, DEFAULT_LON, IP_LOCATION_URL, LOCATION_POLL_SECONDS, USER_AGENT
)
from weather_glance.weather.models import Coordinate

logger = logging.getLogger(__name__)

LocationListener = Callable[[Sequence[Coordinate]], None]


class LocationProvider(ABC):
    """Source of continuous position updates."""

    @abstractmethod
    async def start(self, listener: LocationListener) -> None:
        """Begin delivering updates to ``listener``."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop delivering updates."""


class PollingLocationProvider(LocationProvider):
    """Provider that polls for fixes on its own background thread.

    The listener is called from that thread, so it must be thread safe.
    """

    def __init__(self, interval: float = LOCATION_POLL_SECONDS):
        """Initialize the polling provider.

        Args:
            interval: Seconds between polls
        """
        self.interval = interval
        self._listener: Optional[LocationListener] = None
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @abstractmethod
    def poll(self) -> List[Coordinate]:
        """Return the fixes available right now, possibly none."""

    async def start(self, listener: LocationListener) -> None:
        if self._thread is not None:
            raise RuntimeError(f"{type(self).__name__} already started")

        self._listener = listener
        self._stopped.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"{type(self).__name__}-updates",
            daemon=True
        )
        self._thread.start()

    async def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            await asyncio.to_thread(self._thread.join, self.interval + 1)
            self._thread = None

    def _run(self) -> None:
        while not self._stopped.is_set():
            positions = self.poll()
            try:
                self._listener(positions)
            except RuntimeError as e:
                # Event loop closed while we were polling
                logger.warning(f"Dropping location update: {e}")
                return
            self._stopped.wait(self.interval)


class StaticLocationProvider(PollingLocationProvider):
    """Reports the same configured coordinate on every poll."""

    def __init__(
        self,
        coordinate: Optional[Coordinate] = None,
        interval: float = LOCATION_POLL_SECONDS
    ):
        super().__init__(interval=interval)
        self.coordinate = coordinate or Coordinate(latitude=DEFAULT_LAT, longitude=DEFAULT_LON)

    def poll(self) -> List[Coordinate]:
        return [self.coordinate]


class IpLocationProvider(PollingLocationProvider):
    """Approximates the device position from its public IP address.

    Expects an ip-api.com style JSON body with ``lat`` and ``lon`` fields.
    Failed lookups are logged and reported as an update with no positions.
    """

    def __init__(
        self,
        url: str = IP_LOCATION_URL,
        interval: float = LOCATION_POLL_SECONDS,
        client: Optional[httpx.Client] = None
    ):
        super().__init__(interval=interval)
        self.url = url
        self.client = client or httpx.Client(headers={"User-Agent": USER_AGENT}, timeout=10.0)

    def poll(self) -> List[Coordinate]:
        try:
            response = self.client.get(self.url)
            response.raise_for_status()
            data = response.json()

            if data.get("status", "success") != "success":
                logger.warning(f"IP geolocation lookup failed: {data.get('message', 'unknown reason')}")
                return []

            return [Coordinate(latitude=data["lat"], longitude=data["lon"])]

        except httpx.HTTPError as e:
            logger.warning(f"IP geolocation request error: {e}")
        except (KeyError, ValueError, ValidationError) as e:
            logger.warning(f"Unexpected IP geolocation response: {e}")
        return []

    async def stop(self) -> None:
        await super().stop()
        self.client.close()


class PushLocationProvider(LocationProvider):
    """Provider fed from outside, e.g. by the ``POST /location`` endpoint."""

    def __init__(self):
        self._listener: Optional[LocationListener] = None

    async def start(self, listener: LocationListener) -> None:
        self._listener = listener

    async def stop(self) -> None:
        self._listener = None

    def push(self, positions: Sequence[Coordinate]) -> None:
        """Forward a batch of fixes to the listener.

        Raises:
            RuntimeError: If the provider has not been started
        """
        if self._listener is None:
            raise RuntimeError("PushLocationProvider is not started")
        self._listener(positions)


def build_location_provider(source: str) -> LocationProvider:
    """Create the provider named by the LOCATION_SOURCE setting.

    Raises:
        ValueError: If the source is unknown
    """
    providers = {
        "static": StaticLocationProvider,
        "ip": IpLocationProvider,
        "push": PushLocationProvider,
    }
    try:
        return providers[source.lower()]()
    except KeyError:
        raise ValueError(f"Unknown location source '{source}', expected one of {sorted(providers)}")
