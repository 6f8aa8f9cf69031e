"""Registro de dispositivos: chequeo de identidad + upsert.

Invariante: una vez comprometido un par (serialNumber, deviceId), ninguna
escritura futura puede asociar cualquiera de las dos mitades con otra.
El pre-check da un error legible. Si dos registros concurrentes lo pasan,
la BD decide:
- device_id repetido con otro serial: falla el constraint UNIQUE
- serial repetido con otro device_id: el upsert condicional no actualiza
  ninguna fila (rowcount 0)
En ambos casos se lanza IdentityConflictError y la transacción hace rollback.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ..errors import IdentityConflictError

logger = logging.getLogger(__name__)

# deviceInfo key -> columna mutable
MUTABLE_DEVICE_FIELDS = {
    "name": "name",
    "assetTag": "asset_tag",
    "hostname": "hostname",
    "model": "model",
    "manufacturer": "manufacturer",
    "osName": "os_name",
    "osVersion": "os_version",
    "architecture": "architecture",
    "clientVersion": "client_version",
}

_UPSERT_DEVICE_SQL = text(
    f"""
    INSERT INTO devices (
        serial_number, device_id, {", ".join(MUTABLE_DEVICE_FIELDS.values())},
        status, last_seen, created_at, updated_at
    ) VALUES (
        :serial_number, :device_id, {", ".join(":" + c for c in MUTABLE_DEVICE_FIELDS.values())},
        :status, :now, :now, :now
    )
    ON CONFLICT (serial_number) DO UPDATE SET
        {", ".join(f"{c} = COALESCE(excluded.{c}, devices.{c})" for c in MUTABLE_DEVICE_FIELDS.values())},
        status = excluded.status,
        last_seen = excluded.last_seen,
        updated_at = excluded.updated_at
    WHERE devices.device_id = excluded.device_id
    """
)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def check_identity(conn: Connection, serial_number: str, device_id: str) -> bool:
    """Verifica que el par entrante no choque con uno ya registrado.

    Returns:
        True si el dispositivo ya existe con exactamente el mismo par

    Raises:
        IdentityConflictError: si alguna mitad pertenece a otro par
    """
    rows = conn.execute(
        text(
            """
            SELECT serial_number, device_id
            FROM devices
            WHERE serial_number = :serial_number OR device_id = :device_id
            """
        ),
        {"serial_number": serial_number, "device_id": device_id},
    ).fetchall()

    for row in rows:
        if row.serial_number != serial_number or row.device_id != device_id:
            logger.warning(
                "[INGEST] Identity conflict incoming=(%s, %s) existing=(%s, %s)",
                serial_number,
                device_id,
                row.serial_number,
                row.device_id,
            )
            raise IdentityConflictError(
                serial_number,
                device_id,
                existing=(row.serial_number, row.device_id),
            )

    return bool(rows)


def upsert_device(
    conn: Connection,
    *,
    serial_number: str,
    device_id: str,
    device_info: Mapping[str, Any],
    now: str,
) -> None:
    """Crea el dispositivo o refresca solo sus campos mutables.

    serial_number y device_id nunca se modifican en un UPDATE.
    """
    params = {
        "serial_number": serial_number,
        "device_id": device_id,
        "status": "online",
        "now": now,
    }
    for key, column in MUTABLE_DEVICE_FIELDS.items():
        params[column] = _optional_str(device_info.get(key))

    try:
        result = conn.execute(_UPSERT_DEVICE_SQL, params)
    except IntegrityError as e:
        # Perdedor de un registro concurrente: el constraint UNIQUE decide.
        logger.warning(
            "[INGEST] Uniqueness violation registering serial=%s device_id=%s",
            serial_number,
            device_id,
        )
        raise IdentityConflictError(serial_number, device_id) from e

    if result.rowcount == 0:
        # El serial existe con otro device_id: el WHERE del upsert no tocó la fila
        logger.warning(
            "[INGEST] Serial already paired with another device_id serial=%s device_id=%s",
            serial_number,
            device_id,
        )
        raise IdentityConflictError(serial_number, device_id)

    logger.debug("[INGEST] Device registered: %s (%s)", serial_number, device_id)
