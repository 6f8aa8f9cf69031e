from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from .config import Settings, get_settings


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def build_engine(settings: Settings) -> Engine:
    url = make_url(settings.database_url)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Crear engine url=%s",
        url.render_as_string(hide_password=True),
    )

    engine = create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=settings.db_pool_recycle_seconds,
        future=True,
    )

    # Test de conexión: ayuda a ver en logs si el servicio realmente llega a la BD
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Test de conexión OK")
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")

    return engine


def get_engine() -> Engine:
    """Engine singleton, creado en la primera llamada."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


def reset_engine() -> None:
    """Descarta el engine singleton (útil para testing)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
