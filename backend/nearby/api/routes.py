"""API routes for Nearby.

Thin presentation surface over the enrichment orchestrator:
- POST /session: start discovery at a coordinate (or the configured location)
- GET  /session: current session snapshot, refined as background work lands
- GET  /places/{place_id}: one place of the current session
"""

import logging
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from nearby.models import (
    AppError,
    Coordinates,
    ErrorCode,
    Place,
    SessionSnapshot,
    SessionState,
)
from nearby.services import (
    EnrichmentOrchestrator,
    GeosearchService,
    ImageResolverService,
    PlaceDetailsService,
    TieredHTTPCache,
    WikipediaService,
    create_http_cache,
    create_location_provider,
)
from nearby.settings import settings
from nearby.utils.distance import format_distance

logger = logging.getLogger(__name__)

router = APIRouter()


class DiscoverRequest(BaseModel):
    """Request model for starting a discovery session.

    Omit both coordinates to use the configured location.
    """
    lat: Optional[float] = None
    lng: Optional[float] = None


class PlaceView(BaseModel):
    """Place as shown to API clients."""
    id: int
    title: str
    short_description: str = ""
    long_description: str = ""
    distance_meters: float
    distance_label: str
    image_url: Optional[str] = None
    first_letter: str
    article_url: str

    @classmethod
    def from_place(cls, place: Place, imperial: bool = False) -> "PlaceView":
        return cls(
            id=place.id,
            title=place.title,
            short_description=place.short_description,
            long_description=place.long_description,
            distance_meters=place.distance_meters,
            distance_label=format_distance(place.distance_meters, imperial=imperial),
            image_url=place.image_url,
            first_letter=place.first_letter,
            article_url=place.article_url,
        )


class SessionView(BaseModel):
    generation: int
    state: SessionState
    coordinates: Optional[Coordinates] = None
    message: Optional[str] = None
    places: list[PlaceView] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot, imperial: bool = False) -> "SessionView":
        return cls(
            generation=snapshot.generation,
            state=snapshot.state,
            coordinates=snapshot.coordinates,
            message=snapshot.message,
            places=[PlaceView.from_place(place, imperial) for place in snapshot.places],
        )


class SessionResponse(BaseModel):
    """Response model for session endpoints."""
    success: bool
    session: Optional[SessionView] = None
    error: Optional[AppError] = None


class PlaceResponse(BaseModel):
    """Response model for place details."""
    success: bool
    place: Optional[PlaceView] = None
    error: Optional[AppError] = None


# Service instances
_http_cache: TieredHTTPCache | None = None
_wikipedia_service: WikipediaService | None = None
_orchestrator: EnrichmentOrchestrator | None = None


def get_http_cache() -> TieredHTTPCache:
    global _http_cache
    if _http_cache is None:
        _http_cache = create_http_cache(
            settings.CACHE_MEMORY_BYTES, settings.CACHE_DISK_BYTES, settings.CACHE_PATH
        )
    return _http_cache


def get_wikipedia_service() -> WikipediaService:
    global _wikipedia_service
    if _wikipedia_service is None:
        _wikipedia_service = WikipediaService(cache=get_http_cache())
    return _wikipedia_service


def get_orchestrator() -> EnrichmentOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        wikipedia = get_wikipedia_service()
        _orchestrator = EnrichmentOrchestrator(
            geosearch=GeosearchService(wikipedia),
            details=PlaceDetailsService(wikipedia),
            images=ImageResolverService(wikipedia),
            location=create_location_provider(settings.DEFAULT_LAT, settings.DEFAULT_LON),
        )
    return _orchestrator


async def shutdown_services() -> None:
    """Close clients and flush the cache to disk."""
    global _http_cache, _wikipedia_service, _orchestrator
    if _orchestrator is not None:
        await _orchestrator.close()
        _orchestrator = None
    if _wikipedia_service is not None:
        await _wikipedia_service.close()
        _wikipedia_service = None
    if _http_cache is not None:
        _http_cache.close()
        _http_cache = None


def _session_response(snapshot: SessionSnapshot) -> SessionResponse:
    return SessionResponse(
        success=snapshot.state != SessionState.ERROR,
        session=SessionView.from_snapshot(snapshot, imperial=settings.IMPERIAL_UNITS),
        error=snapshot.error,
    )


@router.post("/session", response_model=SessionResponse)
async def start_session(request: DiscoverRequest) -> SessionResponse:
    """Start discovering places near a coordinate.

    Returns once nearby places are known; descriptions and images keep
    arriving in the background and show up on GET /session.
    """
    orchestrator = get_orchestrator()

    if (request.lat is None) != (request.lng is None):
        return SessionResponse(
            success=False,
            error=AppError(
                code=ErrorCode.INVALID_INPUT,
                message="lat and lng must be given together",
                user_message="Invalid coordinates. Provide both latitude and longitude.",
            ),
        )

    if request.lat is not None and request.lng is not None:
        try:
            coordinates = Coordinates(lat=request.lat, lng=request.lng)
        except ValidationError as e:
            return SessionResponse(
                success=False,
                error=AppError(
                    code=ErrorCode.INVALID_INPUT,
                    message=str(e),
                    user_message="Invalid coordinates. Latitude must be within ±90 and longitude within ±180.",
                ),
            )
        snapshot = await orchestrator.discover(coordinates)
    else:
        snapshot = await orchestrator.discover_current()
        if snapshot is None:
            return SessionResponse(
                success=False,
                error=AppError(
                    code=ErrorCode.NO_LOCATION,
                    message="No coordinates given and no location available",
                    user_message="Location not available.",
                ),
            )

    logger.info(f"[API] Session #{snapshot.generation}: {snapshot.state.value}, {len(snapshot.places)} places")
    return _session_response(snapshot)


@router.get("/session", response_model=SessionResponse)
async def get_session() -> SessionResponse:
    """Get the current session snapshot."""
    return _session_response(get_orchestrator().snapshot())


@router.get("/places/{place_id}", response_model=PlaceResponse)
async def get_place(place_id: int):
    """Get one place of the current session."""
    place = get_orchestrator().get_place(place_id)
    if place is None:
        return JSONResponse(
            status_code=404,
            content=PlaceResponse(
                success=False,
                error=AppError(
                    code=ErrorCode.NOT_FOUND,
                    message=f"Place {place_id} is not part of the current session",
                    user_message="Place not found.",
                ),
            ).model_dump(mode="json"),
        )
    return PlaceResponse(
        success=True,
        place=PlaceView.from_place(place, imperial=settings.IMPERIAL_UNITS),
    )
