"""Consultas de lectura de dispositivos.

Solo lectura: detalle de un dispositivo (con documentos de módulo y eventos
recientes) y listado paginado.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from ...core.domain.modules import MODULE_TABLES
from .codec import loads_document, to_iso

RECENT_EVENTS_LIMIT = 10


def _device_row_to_dict(row: Any) -> Dict[str, Any]:
    return {
        "serialNumber": row["serial_number"],
        "deviceId": row["device_id"],
        "name": row["name"],
        "assetTag": row["asset_tag"],
        "hostname": row["hostname"],
        "model": row["model"],
        "manufacturer": row["manufacturer"],
        "osName": row["os_name"],
        "osVersion": row["os_version"],
        "architecture": row["architecture"],
        "clientVersion": row["client_version"],
        "status": row["status"],
        "lastSeen": to_iso(row["last_seen"]),
        "createdAt": to_iso(row["created_at"]),
        "updatedAt": to_iso(row["updated_at"]),
    }


def _load_modules(conn: Connection, device_id: str) -> Dict[str, Any]:
    modules: Dict[str, Any] = {}
    for module_name, table in MODULE_TABLES.items():
        row = conn.execute(
            text(f"SELECT data, collected_at FROM {table} WHERE device_id = :device_id"),
            {"device_id": device_id},
        ).mappings().first()
        if row is None:
            continue
        modules[module_name] = {
            "data": loads_document(row["data"], context=f"{table}:{device_id}"),
            "collectedAt": to_iso(row["collected_at"]),
        }
    return modules


def _load_recent_events(conn: Connection, device_id: str) -> List[Dict[str, Any]]:
    rows = conn.execute(
        text(
            """
            SELECT event_type, module, message, details, timestamp
            FROM events
            WHERE device_id = :device_id
            ORDER BY timestamp DESC, id DESC
            LIMIT :limit
            """
        ),
        {"device_id": device_id, "limit": RECENT_EVENTS_LIMIT},
    ).mappings().all()

    return [
        {
            "eventType": row["event_type"],
            "module": row["module"],
            "message": row["message"],
            "details": loads_document(row["details"], context=f"events:{device_id}"),
            "timestamp": to_iso(row["timestamp"]),
        }
        for row in rows
    ]


def get_device_detail(engine: Engine, serial_number: str) -> Optional[Dict[str, Any]]:
    """Dispositivo + documentos de módulo + últimos eventos. None si no existe."""
    with engine.connect() as conn:
        row = conn.execute(
            text("SELECT * FROM devices WHERE serial_number = :serial_number"),
            {"serial_number": serial_number},
        ).mappings().first()

        if row is None:
            return None

        device = _device_row_to_dict(row)
        device["modules"] = _load_modules(conn, row["device_id"])
        device["recentEvents"] = _load_recent_events(conn, row["device_id"])
        return device


def list_devices(engine: Engine, *, limit: int = 50, offset: int = 0) -> List[Dict[str, Any]]:
    """Listado de dispositivos, más recientes primero."""
    with engine.connect() as conn:
        rows = conn.execute(
            text(
                """
                SELECT *
                FROM devices
                ORDER BY last_seen DESC, serial_number ASC
                LIMIT :limit OFFSET :offset
                """
            ),
            {"limit": int(limit), "offset": int(offset)},
        ).mappings().all()

    return [_device_row_to_dict(row) for row in rows]
