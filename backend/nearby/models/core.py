"""Core data models for Nearby.

This module contains the Pydantic models used throughout the application
for representing coordinates, nearby places and the state of a discovery
session.
"""

import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .errors import AppError

ARTICLE_URL_TEMPLATE = "https://en.m.wikipedia.org/?curid={page_id}"


class Coordinates(BaseModel):
    """Geographic coordinates with validation.

    Latitude must be between -90 and 90 degrees.
    Longitude must be between -180 and 180 degrees.
    """

    lat: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in degrees")

    @field_validator("lat", "lng")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinate must be a finite number")
        return value

    def to_gscoord(self) -> str:
        """Format as the ``lat|lng`` pair the geosearch endpoint expects."""
        return f"{self.lat}|{self.lng}"


class Place(BaseModel):
    """A nearby point of interest discovered by geosearch.

    Created once per geosearch result and then refined in place by detail
    enrichment and fallback image resolution. ``id``, ``title`` and
    ``distance_meters`` are frozen once the record exists.
    """

    id: int = Field(..., frozen=True, description="Wikipedia page identifier")
    title: str = Field(..., frozen=True, description="Display name of the place")
    short_description: str = Field(default="", description="Short description, may stay empty")
    long_description: str = Field(default="", description="Introductory article extract")
    distance_meters: float = Field(
        ..., frozen=True, description="Distance from the query coordinate in meters"
    )
    image_url: Optional[str] = Field(None, description="Representative image URL")

    @property
    def first_letter(self) -> str:
        """Placeholder letter shown while no image is available."""
        stripped = self.title.strip()
        return stripped[0].upper() if stripped else "?"

    @property
    def article_url(self) -> str:
        return ARTICLE_URL_TEMPLATE.format(page_id=self.id)

    @property
    def has_image(self) -> bool:
        return self.image_url is not None

    def set_image(self, url: str) -> bool:
        """Attach an image unless one is already set.

        Returns True when the image was applied.
        """
        if self.image_url is not None:
            return False
        self.image_url = url
        return True


class SessionState(str, Enum):
    """Top-level state of a discovery session."""

    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    LOADED = "loaded"


class SessionSnapshot(BaseModel):
    """Point-in-time view of a discovery session for the presentation layer."""

    generation: int = Field(default=0, description="Discovery generation counter")
    state: SessionState = Field(default=SessionState.IDLE)
    coordinates: Optional[Coordinates] = None
    places: list[Place] = Field(default_factory=list)
    error: Optional[AppError] = None
    message: Optional[str] = Field(None, description="User-visible status message")
