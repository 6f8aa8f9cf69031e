"""Creación del esquema de telemetría.

Crea las tablas si no existen. Seguro de llamar múltiples veces.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from .tables import metadata

logger = logging.getLogger(__name__)


def ensure_schema(engine: Engine) -> None:
    """Asegura que existan devices, events y una tabla por módulo.

    Args:
        engine: Engine de la BD de telemetría
    """
    logger.info("[DB] Ensuring schema exists (%d tables)", len(metadata.tables))

    try:
        metadata.create_all(engine, checkfirst=True)
        logger.info("[DB] Schema creation completed successfully")
    except Exception as e:
        logger.exception("[DB] Schema creation failed: %s", type(e).__name__)
        raise
