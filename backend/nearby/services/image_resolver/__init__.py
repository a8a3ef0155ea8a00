"""Fallback image resolver module.

Searches Wikimedia Commons for places that have no page thumbnail.
"""

from .service import (
    ImageResolverService,
    first_image_title,
    generate_search_terms,
    seed_phrase,
)

__all__ = [
    "ImageResolverService",
    "first_image_title",
    "generate_search_terms",
    "seed_phrase",
]
