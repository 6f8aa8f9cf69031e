"""Health and readiness endpoints."""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.engine import Engine

from telemetry_common.db import get_engine

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness: ok mientras el proceso esté vivo."""
    return {"status": "ok"}


@router.get("/ready")
def ready(engine: Engine = Depends(get_engine)):
    """Readiness: verifica conectividad con la BD y mide latencia."""
    try:
        start_time = time.time()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        latency_ms = (time.time() - start_time) * 1000
    except Exception:
        # No exponer detalles del error al cliente, solo loguear internamente
        logger.exception("[DB] Readiness check failed")
        raise HTTPException(status_code=503, detail="not ready")

    return {"status": "ready", "latency_ms": round(latency_ms, 2)}
