"""Geosearch service module.

Discovers Wikipedia articles near a coordinate.
"""

from .service import GeosearchService, parse_geosearch, parse_geosearch_item

__all__ = [
    "GeosearchService",
    "parse_geosearch",
    "parse_geosearch_item",
]
