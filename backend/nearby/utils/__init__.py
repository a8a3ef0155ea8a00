"""Utility helpers."""

from .cache import LRUCache
from .distance import format_distance

__all__ = ["LRUCache", "format_distance"]
