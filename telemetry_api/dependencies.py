"""Dependency injection para los endpoints.

Coordinador y resolver se crean por request: no guardan estado compartido.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.engine import Engine

from telemetry_common.config import get_settings
from telemetry_common.db import get_engine

from .infrastructure.cache.invalidation import CacheInvalidationNotifier, get_notifier
from .ingest import IngestionCoordinator
from .resolution import IdentityResolver, SqlDeviceDirectory


def get_coordinator(
    engine: Engine = Depends(get_engine),
    notifier: CacheInvalidationNotifier = Depends(get_notifier),
) -> IngestionCoordinator:
    return IngestionCoordinator(engine, notifier)


def get_resolver(engine: Engine = Depends(get_engine)) -> IdentityResolver:
    timeout_seconds = get_settings().resolver_directory_timeout_seconds
    return IdentityResolver(
        SqlDeviceDirectory(engine, statement_timeout_seconds=timeout_seconds),
        timeout_seconds=timeout_seconds,
    )
