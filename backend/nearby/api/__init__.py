"""API layer for Nearby."""

from .routes import router

__all__ = ["router"]
