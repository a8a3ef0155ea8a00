"""Geosearch service: discover Wikipedia places near a coordinate.

Issues one geosearch request (10 km radius, 24 results) and maps every
well-formed result item into a fresh ``Place``. Malformed items are dropped
without failing the batch; an empty result is a valid outcome.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from nearby.models import Coordinates, InvalidRequest, ParseError, Place
from nearby.services.wikipedia import WikipediaService

logger = logging.getLogger(__name__)


def parse_geosearch_item(item: Any) -> Optional[Place]:
    """Map one geosearch result item into a Place.

    Returns None when ``pageid``, ``title`` or ``dist`` is missing or has
    the wrong type.
    """
    if not isinstance(item, dict):
        return None
    page_id = item.get("pageid")
    title = item.get("title")
    distance = item.get("dist")

    # bool is an int subclass; a flag is never a page id or distance
    if not isinstance(page_id, int) or isinstance(page_id, bool):
        return None
    if not isinstance(title, str):
        return None
    if not isinstance(distance, (int, float)) or isinstance(distance, bool):
        return None

    return Place(id=page_id, title=title, distance_meters=float(distance))


def parse_geosearch(payload: dict) -> list[Place]:
    """Map a geosearch response into places, keeping the first of duplicate ids.

    Raises:
        ParseError: The payload has no ``query.geosearch`` list.
    """
    query = payload.get("query")
    items = query.get("geosearch") if isinstance(query, dict) else None
    if not isinstance(items, list):
        raise ParseError("Unable to parse results")

    places: list[Place] = []
    seen: set[int] = set()
    for item in items:
        place = parse_geosearch_item(item)
        if place is None:
            logger.debug(f"[GEOSEARCH] Dropping malformed item: {item!r}")
            continue
        if place.id in seen:
            logger.debug(f"[GEOSEARCH] Dropping duplicate page {place.id}")
            continue
        seen.add(place.id)
        places.append(place)
    return places


class GeosearchService:
    """Discovers nearby places through the Wikipedia geosearch endpoint."""

    def __init__(self, wikipedia: WikipediaService) -> None:
        self._wikipedia = wikipedia

    async def fetch_nearby(self, coordinates: Coordinates) -> list[Place]:
        """Return the places around ``coordinates``.

        Raises:
            NetworkError: The request failed at the transport level.
            ParseError: The response could not be parsed.
        """
        payload = await self._wikipedia.geosearch(coordinates.lat, coordinates.lng)
        places = parse_geosearch(payload)
        logger.info(f"[GEOSEARCH] {coordinates.to_gscoord()}: {len(places)} places")
        return places

    async def fetch_nearby_at(self, lat: float, lng: float) -> list[Place]:
        """Like ``fetch_nearby`` but validates raw degrees first.

        Raises:
            InvalidRequest: The coordinate is out of range or not finite.
        """
        try:
            coordinates = Coordinates(lat=lat, lng=lng)
        except ValidationError as e:
            raise InvalidRequest(f"Invalid coordinate ({lat}, {lng})") from e
        return await self.fetch_nearby(coordinates)
