"""Nearby Services.

Service layer components:
- Cache: tiered memory/disk HTTP response cache beneath every request
- Wikipedia: shared Wikipedia/Commons API client
- Geosearch: nearby places by coordinate
- Place Details: batched descriptions and thumbnails
- Image Resolver: Commons search fallback for places without an image
- Enrichment: orchestrates the pipeline per discovery session
- Location: where the user is
"""

from .cache import CacheService, CachingTransport, TieredHTTPCache, create_http_cache
from .wikipedia import WikipediaService
from .geosearch import GeosearchService
from .place_details import PlaceDetails, PlaceDetailsService
from .image_resolver import ImageResolverService, generate_search_terms
from .location import FixedLocationProvider, LocationProvider, create_location_provider
from .enrichment import EnrichmentOrchestrator, SessionEvent, SessionEventKind

__all__ = [
    # Cache
    "CacheService",
    "CachingTransport",
    "TieredHTTPCache",
    "create_http_cache",
    # Wikipedia
    "WikipediaService",
    # Pipeline
    "GeosearchService",
    "PlaceDetails",
    "PlaceDetailsService",
    "ImageResolverService",
    "generate_search_terms",
    "EnrichmentOrchestrator",
    "SessionEvent",
    "SessionEventKind",
    # Location
    "FixedLocationProvider",
    "LocationProvider",
    "create_location_provider",
]
