"""One-shot location acquisition."""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from weather_glance.location.providers import LocationProvider
from weather_glance.weather.models import Coordinate, LocationState

logger = logging.getLogger(__name__)

LocationSubscriber = Callable[[Coordinate], None]


class LocationGate:
    """Holds the first position fix reported by a location provider.

    The gate starts UNSET and moves to SET on the first update that carries at
    least one position. After that every update is ignored for the lifetime
    of the instance. Updates may arrive on any thread; state changes and
    subscriber callbacks only ever run on the event loop the gate was started on.

    Provider failures are not surfaced: the gate simply stays UNSET.
    """

    def __init__(self, provider: Optional[LocationProvider] = None):
        """Initialize the location gate.

        Args:
            provider: Source of position updates. None when updates are fed
                directly through ``on_location_update``.
        """
        self.provider = provider
        self._coordinate: Optional[Coordinate] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._fixed: Optional[asyncio.Event] = None
        self._subscribers: List[LocationSubscriber] = []

    @property
    def state(self) -> LocationState:
        return LocationState.SET if self._coordinate is not None else LocationState.UNSET

    @property
    def coordinate(self) -> Optional[Coordinate]:
        return self._coordinate

    async def start(self) -> None:
        """Bind to the running event loop and request continuous updates."""
        self._loop = asyncio.get_running_loop()
        self._fixed = asyncio.Event()
        if self._coordinate is not None:
            self._fixed.set()

        if self.provider:
            logger.info(f"Requesting location updates from {type(self.provider).__name__}")
            await self.provider.start(self.on_location_update)

    async def stop(self) -> None:
        """Stop the provider. The adopted coordinate is kept."""
        if self.provider:
            await self.provider.stop()

    def subscribe(self, callback: LocationSubscriber) -> Callable[[], None]:
        """Register a callback for the first fix.

        Args:
            callback: Called once on the event loop with the adopted coordinate

        Returns:
            Function that removes the callback again
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def wait_for_fix(self) -> Coordinate:
        """Wait until the gate holds a coordinate."""
        if self._fixed is None:
            raise RuntimeError("LocationGate is not started")
        await self._fixed.wait()
        return self._coordinate

    def on_location_update(self, positions: Sequence[Coordinate]) -> None:
        """Listener for provider updates, safe to call from any thread.

        Args:
            positions: Fixes in the update, oldest first. Only the last one is used.
        """
        if self._coordinate is not None or not positions:
            return

        if self._loop is None:
            raise RuntimeError("LocationGate is not started")

        location = positions[-1]
        if self._on_loop_thread():
            self._adopt(location)
        else:
            self._loop.call_soon_threadsafe(self._adopt, location)

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _adopt(self, location: Coordinate) -> None:
        # Re-checked here: several updates may pass the check above before the loop runs
        if self._coordinate is not None:
            logger.debug(f"Ignoring location {location}, gate already holds {self._coordinate}")
            return

        self._coordinate = location
        logger.info(f"Location acquired: lat={location.latitude}, lon={location.longitude}")
        if self._fixed is not None:
            self._fixed.set()

        for callback in list(self._subscribers):
            try:
                callback(location)
            except Exception as e:
                logger.error(f"Location subscriber {callback!r} failed: {e}")
