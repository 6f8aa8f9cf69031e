"""Endpoints de lectura de dispositivos."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from telemetry_common.db import get_engine

from ..auth import require_api_key
from ..infrastructure.persistence import get_device_detail, list_devices
from ..schemas import DeviceDetailOut, DeviceOut

router = APIRouter(tags=["devices"])


@router.get(
    "/devices",
    response_model=List[DeviceOut],
    dependencies=[Depends(require_api_key)],
)
def get_devices(
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    engine: Engine = Depends(get_engine),
):
    return list_devices(engine, limit=limit, offset=offset)


@router.get(
    "/devices/{serial_number}",
    response_model=DeviceDetailOut,
    dependencies=[Depends(require_api_key)],
)
def get_device(serial_number: str, engine: Engine = Depends(get_engine)):
    """Dispositivo con sus documentos de módulo y los últimos eventos."""
    device = get_device_detail(engine, serial_number)
    if device is None:
        raise HTTPException(status_code=404, detail=f"Device not found: {serial_number}")
    return device
