"""Fallback image resolution through Wikimedia Commons search.

For a place that still has no image after detail enrichment, search the
Commons File namespace with progressively narrower queries built from the
place's short description (or its title), and take the first result whose
title is a JPEG, PNG or GIF file.

Example for "Golden Gate Bridge Park":
    "Golden Gate Bridge Park" -> "Gate Bridge Park" -> "Bridge Park" -> "Park"
"""

import logging
from typing import Optional

from nearby.models import NetworkError, NoImageFound, ParseError, Place
from nearby.services.wikipedia import WikipediaService

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".png", ".gif")
RESOLVED_IMAGE_WIDTH = 300


def seed_phrase(place: Place) -> str:
    """Short description when present, otherwise the title."""
    if place.short_description.strip():
        return place.short_description
    return place.title


def generate_search_terms(phrase: str) -> list[str]:
    """Build candidate search terms, longest first.

    ``term[i]`` is the phrase from word ``i`` to the end, so each term drops
    one more leading word than the previous one.
    """
    words = phrase.split()
    return [" ".join(words[i:]) for i in range(len(words))]


def is_image_title(title: str) -> bool:
    return title.lower().endswith(IMAGE_EXTENSIONS)


def first_image_title(payload: dict) -> Optional[str]:
    """First result title (in the order returned) that names an image file.

    Raises:
        ParseError: The payload has no ``query.search`` list.
    """
    query = payload.get("query")
    results = query.get("search") if isinstance(query, dict) else None
    if not isinstance(results, list):
        raise ParseError("Unable to parse search results")

    for result in results:
        if not isinstance(result, dict):
            continue
        title = result.get("title")
        if isinstance(title, str) and is_image_title(title):
            return title
    return None


class ImageResolverService:
    """Finds a representative Commons image for a place without one."""

    def __init__(self, wikipedia: WikipediaService) -> None:
        self._wikipedia = wikipedia

    async def resolve(self, place: Place) -> str:
        """Return an image URL for ``place``.

        Terms are tried strictly one after another; a term whose search
        fails transiently is skipped.

        Raises:
            NoImageFound: Every candidate term was exhausted.
        """
        terms = generate_search_terms(seed_phrase(place))
        for term in terms:
            try:
                payload = await self._wikipedia.search_files(term)
                title = first_image_title(payload)
            except (NetworkError, ParseError) as e:
                logger.info(f"[IMAGES] {place.title}: search '{term}' failed: {e}")
                continue

            if title is not None:
                url = self._wikipedia.file_path_url(title, width=RESOLVED_IMAGE_WIDTH)
                logger.info(f"[IMAGES] {place.title}: found '{title}' via '{term}'")
                return url
            logger.debug(f"[IMAGES] {place.title}: no image files for '{term}'")

        raise NoImageFound(f"No image found for {place.title!r} after {len(terms)} searches")
