"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API de telemetría organizados por función.
"""

from .health import router as health_router
from .ingest import router as ingest_router
from .resolve import router as resolve_router
from .devices import router as devices_router
from .cache import router as cache_router

__all__ = [
    "health_router",
    "ingest_router",
    "resolve_router",
    "devices_router",
    "cache_router",
]
