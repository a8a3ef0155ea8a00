"""Error taxonomy for the enrichment pipeline.

Exceptions are raised by the HTTP clients and handled by the orchestrator.
``AppError`` is the serializable form returned by the API layer.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes exposed by the API."""

    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NO_LOCATION = "NO_LOCATION"
    NOT_FOUND = "NOT_FOUND"
    API_ERROR = "API_ERROR"


class AppError(BaseModel):
    """Error envelope returned to API clients."""

    code: ErrorCode = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Technical error message")
    user_message: str = Field(..., description="Message suitable for display")


class NearbyError(Exception):
    """Base class for all pipeline errors."""

    code: ErrorCode = ErrorCode.API_ERROR
    user_message: str = "Something went wrong. Please try again."

    def to_app_error(self) -> AppError:
        return AppError(code=self.code, message=str(self), user_message=self.user_message)


class NetworkError(NearbyError):
    """Transport-level failure talking to a remote API."""

    code = ErrorCode.NETWORK_ERROR

    def __init__(self, cause: Optional[BaseException] = None, message: Optional[str] = None) -> None:
        self.cause = cause
        if message is None:
            message = f"{type(cause).__name__}: {cause}" if cause is not None else "network request failed"
        super().__init__(message)

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"Network error: {self}"


class ParseError(NearbyError):
    """The response body was not JSON or did not have the expected shape."""

    code = ErrorCode.PARSE_ERROR
    user_message = "Unable to parse results"


class NoImageFound(NearbyError):
    """Fallback image search exhausted every candidate term.

    This is an expected outcome; the place keeps showing its placeholder.
    """

    code = ErrorCode.NOT_FOUND
    user_message = "No image found."


class InvalidRequest(NearbyError):
    """A request could not be built from the given input."""

    code = ErrorCode.INVALID_INPUT
    user_message = "Invalid request. Please check your input."
