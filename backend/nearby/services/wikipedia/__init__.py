"""Wikipedia/Wikimedia Commons API client module."""

from .service import (
    GEOSEARCH_LIMIT,
    GEOSEARCH_RADIUS_METERS,
    WikipediaService,
)

__all__ = [
    "GEOSEARCH_LIMIT",
    "GEOSEARCH_RADIUS_METERS",
    "WikipediaService",
]
