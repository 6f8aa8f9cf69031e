"""Ingesta de payloads unificados de dispositivos."""

from .coordinator import IngestionCoordinator, IngestSummary
from .payload import UnifiedPayload

__all__ = [
    "IngestionCoordinator",
    "IngestSummary",
    "UnifiedPayload",
]
