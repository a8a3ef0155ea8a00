"""Location provider module."""

from .service import FixedLocationProvider, LocationProvider, create_location_provider

__all__ = [
    "FixedLocationProvider",
    "LocationProvider",
    "create_location_provider",
]
