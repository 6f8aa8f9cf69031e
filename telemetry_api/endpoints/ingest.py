"""Endpoint de ingesta de payloads unificados."""

from __future__ import annotations

import os
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from ..auth import require_api_key
from ..errors import IngestError, StorageError
from ..ingest import IngestionCoordinator
from ..dependencies import get_coordinator
from ..rate_limiter import get_client_ip, get_rate_limiter
from ..schemas import ErrorOut, IngestSummaryOut

router = APIRouter(tags=["ingest"])
logger = logging.getLogger(__name__)


def _serial_hint(payload: Any) -> str | None:
    if isinstance(payload, dict) and isinstance(payload.get("deviceInfo"), dict):
        serial = payload["deviceInfo"].get("serialNumber")
        return serial if isinstance(serial, str) else None
    return None


def _error_response(error: IngestError) -> JSONResponse:
    message = str(error)
    if isinstance(error, StorageError) and os.getenv("INGEST_DEBUG_ERRORS", "").strip() != "1":
        message = "Storage failure, payload not stored. Safe to retry."
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.code, "message": message},
    )


@router.post(
    "/ingest/payload",
    response_model=IngestSummaryOut,
    status_code=201,
    responses={400: {"model": ErrorOut}, 409: {"model": ErrorOut}, 500: {"model": ErrorOut}},
    dependencies=[Depends(require_api_key)],
)
def ingest_payload(
    request: Request,
    payload: Any = Body(...),
    coordinator: IngestionCoordinator = Depends(get_coordinator),
):
    """Ingesta de un payload unificado (deviceInfo + moduleData + metadata).

    El body se reenvía tal cual al coordinador; los errores se mapean a
    400 (validación), 409 (conflicto de identidad) y 500 (almacenamiento).
    """
    limiter = get_rate_limiter()
    limiter.check_ingest(serial_number=_serial_hint(payload), ip=get_client_ip(request))

    try:
        summary = coordinator.ingest(payload)
    except IngestError as e:
        logger.warning("[INGEST] Payload rejected code=%s: %s", e.code, e)
        return _error_response(e)

    return summary.to_dict()
