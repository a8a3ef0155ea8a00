"""Location providers.

A provider answers one question: where is the user right now? ``None``
means the location is unavailable or access was denied, in which case no
discovery session is started.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from nearby.models import Coordinates

logger = logging.getLogger(__name__)

class LocationProvider(ABC):
    """Abstract base class for location providers."""

    @abstractmethod
    async def current_location(self) -> Optional[Coordinates]:
        """Return the current coordinate, or None when unavailable or denied."""
        pass

class FixedLocationProvider(LocationProvider):
    """Always reports the same coordinate (or none at all)."""

    def __init__(self, coordinates: Optional[Coordinates] = None) -> None:
        self._coordinates = coordinates

    async def current_location(self) -> Optional[Coordinates]:
        return self._coordinates


def create_location_provider(lat: Optional[float], lon: Optional[float]) -> LocationProvider:
    """Build the provider from configured default coordinates, if any."""
    if lat is None or lon is None:
        logger.info("[LOCATION] No default location configured")
        return FixedLocationProvider()
    return FixedLocationProvider(Coordinates(lat=lat, lng=lon))
