"""Enrichment orchestrator module.

Runs discovery sessions: geosearch, detail enrichment and fallback images.
"""

from .service import (
    NO_RESULTS_MESSAGE,
    EnrichmentOrchestrator,
    SessionEvent,
    SessionEventKind,
    SessionListener,
)

__all__ = [
    "NO_RESULTS_MESSAGE",
    "EnrichmentOrchestrator",
    "SessionEvent",
    "SessionEventKind",
    "SessionListener",
]
