"""Data models for Nearby."""

from .core import Coordinates, Place, SessionSnapshot, SessionState
from .errors import (
    AppError,
    ErrorCode,
    InvalidRequest,
    NearbyError,
    NetworkError,
    NoImageFound,
    ParseError,
)

__all__ = [
    "Coordinates",
    "Place",
    "SessionState",
    "SessionSnapshot",
    "AppError",
    "ErrorCode",
    "NearbyError",
    "NetworkError",
    "ParseError",
    "NoImageFound",
    "InvalidRequest",
]
