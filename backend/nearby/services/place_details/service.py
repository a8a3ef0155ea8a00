"""Place detail enrichment.

Fetches long descriptions, short descriptions and thumbnails for a whole
batch of places in a single request, and merges the results back by page id.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from nearby.models import ParseError, Place
from nearby.services.wikipedia import WikipediaService

logger = logging.getLogger(__name__)

SHORT_DESCRIPTION_PROPS = ("wikibase-shortdesc", "shortdesc")


@dataclass
class PlaceDetails:
    """Per-page update produced by detail enrichment."""

    page_id: int
    long_description: Optional[str] = None
    short_description: Optional[str] = None
    image_url: Optional[str] = None


def parse_page(page_id: int, page: dict) -> PlaceDetails:
    """Extract the fields we use from one entry of ``query.pages``."""
    extract = page.get("extract")
    details = PlaceDetails(page_id=page_id)
    if isinstance(extract, str):
        details.long_description = extract

    pageprops = page.get("pageprops")
    if isinstance(pageprops, dict):
        for prop in SHORT_DESCRIPTION_PROPS:
            value = pageprops.get(prop)
            if isinstance(value, str) and value:
                details.short_description = value
                break

    thumbnail = page.get("thumbnail")
    if isinstance(thumbnail, dict):
        source = thumbnail.get("source")
        if isinstance(source, str) and source:
            details.image_url = source
    return details


def parse_page_details(payload: dict) -> dict[int, PlaceDetails]:
    """Map a detail response into updates keyed by page id.

    Pages whose key is not a numeric id are skipped.

    Raises:
        ParseError: The payload has no ``query.pages`` object.
    """
    query = payload.get("query")
    pages = query.get("pages") if isinstance(query, dict) else None
    if not isinstance(pages, dict):
        raise ParseError("Unable to parse results")

    details: dict[int, PlaceDetails] = {}
    for key, page in pages.items():
        try:
            page_id = int(key)
        except (TypeError, ValueError):
            continue
        if not isinstance(page, dict):
            continue
        details[page_id] = parse_page(page_id, page)
    return details


def apply_details(places: list[Place], details: dict[int, PlaceDetails]) -> list[Place]:
    """Merge detail updates into places in place, matching strictly by id.

    Updates for unknown ids are ignored. ``id``, ``title`` and
    ``distance_meters`` are never touched, and an image that is already set
    is kept.

    Returns:
        The places that were changed.
    """
    changed: list[Place] = []
    by_id = {place.id: place for place in places}
    for page_id, update in details.items():
        place = by_id.get(page_id)
        if place is None:
            continue
        if update.long_description is not None:
            place.long_description = update.long_description
        if update.short_description is not None:
            place.short_description = update.short_description
        if update.image_url is not None:
            place.set_image(update.image_url)
        changed.append(place)
    return changed


class PlaceDetailsService:
    """Batch detail lookup for a set of places."""

    def __init__(self, wikipedia: WikipediaService) -> None:
        self._wikipedia = wikipedia

    async def fetch_details(self, places: list[Place]) -> dict[int, PlaceDetails]:
        """Fetch details for every place in one request.

        Raises:
            NetworkError: The request failed at the transport level.
            ParseError: The response could not be parsed.
        """
        if not places:
            return {}
        payload = await self._wikipedia.page_details([place.id for place in places])
        details = parse_page_details(payload)
        with_images = sum(1 for update in details.values() if update.image_url)
        logger.info(f"[DETAILS] {len(details)}/{len(places)} pages, {with_images} with thumbnails")
        return details
