"""Enrichment orchestrator.

Sequences the place-enrichment pipeline for one discovery session at a time:

1. Geosearch (terminal on failure: session goes to ERROR)
2. Detail enrichment for the whole batch in one request (non-fatal)
3. Fallback image resolution for every place still missing an image
   (non-fatal, concurrent across places, sequential per place)

State machine per session: IDLE -> LOADING -> {ERROR | LOADED}. Steps 2-3
run as a background task after LOADED and never move the state back to
LOADING; they update places in place and notify observers.

All session and place mutations happen on the event loop between awaits,
so the orchestrator is the single owner of the place list. Every result is
checked against the generation it was issued for; results for a superseded
discovery are dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from nearby.models import (
    Coordinates,
    NearbyError,
    NoImageFound,
    Place,
    SessionSnapshot,
    SessionState,
)
from nearby.services.geosearch import GeosearchService
from nearby.services.image_resolver import ImageResolverService
from nearby.services.location import LocationProvider
from nearby.services.place_details import PlaceDetailsService, apply_details

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No places found nearby."
LOADING_MESSAGE = "Loading..."


class SessionEventKind(str, Enum):
    STATE_CHANGED = "state_changed"
    PLACE_UPDATED = "place_updated"


@dataclass
class SessionEvent:
    """Notification sent to observers of the orchestrator."""

    kind: SessionEventKind
    generation: int
    state: SessionState
    place: Optional[Place] = None


SessionListener = Callable[[SessionEvent], None]


class EnrichmentOrchestrator:
    """Runs discovery sessions and their background refinements.

    Args:
        geosearch: Discovers places by coordinate.
        details: Batch detail enrichment.
        images: Fallback image resolver.
        location: Optional provider used by ``discover_current``.
        max_concurrent_images: Upper bound on concurrent fallback resolutions.
        cancel_superseded: Cancel the refinement task of a superseded
            discovery. Late results are ignored either way.
    """

    def __init__(
        self,
        geosearch: GeosearchService,
        details: PlaceDetailsService,
        images: ImageResolverService,
        location: LocationProvider | None = None,
        max_concurrent_images: int = 4,
        cancel_superseded: bool = True,
    ) -> None:
        self._geosearch = geosearch
        self._details = details
        self._images = images
        self._location = location
        self._max_concurrent_images = max_concurrent_images
        self._cancel_superseded = cancel_superseded

        self._generation = 0
        self._state = SessionState.IDLE
        self._coordinates: Coordinates | None = None
        self._places: list[Place] = []
        self._error: NearbyError | None = None
        self._refinement_errors: list[NearbyError] = []
        self._refinements: dict[int, asyncio.Task] = {}
        self._listeners: list[SessionListener] = []

    # ── Observers ──

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"[SESSION] Listener failed on {event.kind.value}")

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        logger.info(f"[SESSION] #{self._generation} -> {state.value}")
        self._notify(SessionEvent(SessionEventKind.STATE_CHANGED, self._generation, state))

    def _place_updated(self, generation: int, place: Place) -> None:
        self._notify(SessionEvent(SessionEventKind.PLACE_UPDATED, generation, self._state, place))

    # ── Read access ──

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def places(self) -> list[Place]:
        return list(self._places)

    @property
    def error(self) -> NearbyError | None:
        return self._error

    @property
    def refinement_errors(self) -> list[NearbyError]:
        """Non-fatal detail/image failures of the current session."""
        return list(self._refinement_errors)

    def get_place(self, place_id: int) -> Place | None:
        for place in self._places:
            if place.id == place_id:
                return place
        return None

    def snapshot(self) -> SessionSnapshot:
        message: str | None = None
        if self._state == SessionState.LOADING:
            message = LOADING_MESSAGE
        elif self._state == SessionState.ERROR and self._error is not None:
            message = self._error.user_message
        elif self._state == SessionState.LOADED and not self._places:
            message = NO_RESULTS_MESSAGE

        return SessionSnapshot(
            generation=self._generation,
            state=self._state,
            coordinates=self._coordinates,
            places=[place.model_copy() for place in self._places],
            error=self._error.to_app_error() if self._error is not None else None,
            message=message,
        )

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    # ── Discovery ──

    async def discover_current(self) -> SessionSnapshot | None:
        """Discover around the provider's location; None when there is none."""
        if self._location is None:
            logger.info("[SESSION] No location provider configured")
            return None
        coordinates = await self._location.current_location()
        if coordinates is None:
            logger.info("[SESSION] Location unavailable, not starting a session")
            return None
        return await self.discover(coordinates)

    async def discover(self, coordinates: Coordinates) -> SessionSnapshot:
        """Start a new session at ``coordinates``.

        Discards every place of the previous session. Returns once geosearch
        has finished; detail and image refinements continue in the
        background (see ``wait_for_refinements``).
        """
        self._supersede_refinements()
        self._generation += 1
        generation = self._generation
        self._coordinates = coordinates
        self._places = []
        self._error = None
        self._refinement_errors = []
        self._set_state(SessionState.LOADING)

        try:
            places = await self._geosearch.fetch_nearby(coordinates)
        except NearbyError as e:
            return self._fail(generation, e)
        except Exception as e:
            logger.exception(f"[SESSION] #{generation} geosearch raised unexpectedly")
            error = NearbyError(f"{type(e).__name__}: {e}")
            error.__cause__ = e
            return self._fail(generation, error)

        if not self._is_current(generation):
            logger.debug(f"[SESSION] Dropping stale geosearch result for #{generation}")
            return self.snapshot()

        self._places = places
        self._set_state(SessionState.LOADED)
        if places:
            self._refinements[generation] = asyncio.create_task(
                self._refine(generation, places), name=f"refine-{generation}"
            )
        return self.snapshot()

    def _fail(self, generation: int, error: NearbyError) -> SessionSnapshot:
        if not self._is_current(generation):
            logger.debug(f"[SESSION] Dropping stale geosearch failure for #{generation}")
            return self.snapshot()
        logger.warning(f"[SESSION] #{generation} geosearch failed: {error}")
        self._error = error
        self._set_state(SessionState.ERROR)
        return self.snapshot()

    def _supersede_refinements(self) -> None:
        if not self._cancel_superseded:
            return
        for generation, task in list(self._refinements.items()):
            if not task.done():
                logger.debug(f"[SESSION] Cancelling refinements for #{generation}")
                task.cancel()

    async def _refine(self, generation: int, places: list[Place]) -> None:
        try:
            await self._enrich_details(generation, places)
            if not self._is_current(generation):
                return

            missing = [place for place in places if not place.has_image]
            if missing:
                logger.info(f"[SESSION] #{generation} resolving images for {len(missing)} places")
                semaphore = asyncio.Semaphore(self._max_concurrent_images)
                await asyncio.gather(
                    *(self._resolve_image(generation, place, semaphore) for place in missing)
                )
        finally:
            self._refinements.pop(generation, None)

    async def _enrich_details(self, generation: int, places: list[Place]) -> None:
        try:
            details = await self._details.fetch_details(places)
        except NearbyError as e:
            if self._is_current(generation):
                logger.warning(f"[SESSION] #{generation} detail enrichment failed: {e}")
                self._refinement_errors.append(e)
            return

        if not self._is_current(generation):
            logger.debug(f"[SESSION] Dropping stale details for #{generation}")
            return
        for place in apply_details(places, details):
            self._place_updated(generation, place)

    async def _resolve_image(
        self, generation: int, place: Place, semaphore: asyncio.Semaphore
    ) -> None:
        async with semaphore:
            if not self._is_current(generation):
                return
            try:
                url = await self._images.resolve(place)
            except NoImageFound:
                logger.info(f"[SESSION] No image for {place.title}, keeping placeholder")
                return
            except NearbyError as e:
                if self._is_current(generation):
                    logger.warning(f"[SESSION] Image lookup for {place.title} failed: {e}")
                    self._refinement_errors.append(e)
                return

        if not self._is_current(generation):
            logger.debug(f"[SESSION] Dropping stale image for {place.title} (#{generation})")
            return
        if place.set_image(url):
            self._place_updated(generation, place)

    async def wait_for_refinements(self) -> None:
        """Wait until the current session's background refinements finish."""
        task = self._refinements.get(self._generation)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def close(self) -> None:
        """Cancel and await every outstanding refinement task."""
        tasks = list(self._refinements.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._refinements.clear()
