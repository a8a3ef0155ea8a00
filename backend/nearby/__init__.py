"""Nearby: Wikipedia places around a coordinate, enriched with text and images."""

__version__ = "1.0.0"
