"""Place detail enrichment module."""

from .service import (
    PlaceDetails,
    PlaceDetailsService,
    apply_details,
    parse_page_details,
)

__all__ = [
    "PlaceDetails",
    "PlaceDetailsService",
    "apply_details",
    "parse_page_details",
]
