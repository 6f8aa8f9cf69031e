"""Directorio de dispositivos para el resolver.

Capacidad de listado: todos los dispositivos conocidos con su identidad y
los documentos de módulo que pueden traer nombres/hostnames alternativos.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from ..core.domain.modules import MODULE_TABLES
from ..infrastructure.persistence.codec import loads_document

logger = logging.getLogger(__name__)

# Módulos que el resolver inspecciona
DIRECTORY_MODULES = ("inventory", "network", "system")


@dataclass(frozen=True)
class DirectoryEntry:
    serial_number: str
    device_id: str
    asset_tag: Optional[str] = None
    name: Optional[str] = None
    modules: Dict[str, Any] = field(default_factory=dict)

    def module(self, module_name: str) -> Dict[str, Any]:
        document = self.modules.get(module_name)
        return document if isinstance(document, dict) else {}


class DeviceDirectory(ABC):
    """Interfaz del listado de dispositivos."""

    @abstractmethod
    def list_devices(self) -> List[DirectoryEntry]:
        pass


class InMemoryDeviceDirectory(DeviceDirectory):
    """Directorio fijo, en el orden dado."""

    def __init__(self, entries: List[DirectoryEntry]):
        self._entries = list(entries)

    def list_devices(self) -> List[DirectoryEntry]:
        return list(self._entries)


class SqlDeviceDirectory(DeviceDirectory):
    """Directorio leído de la BD: un snapshot completo por llamada.

    En PostgreSQL la consulta se corta en la BD al pasar statement_timeout.
    """

    def __init__(self, engine: Engine, *, statement_timeout_seconds: Optional[float] = None):
        self._engine = engine
        self._statement_timeout = statement_timeout_seconds

    def _apply_statement_timeout(self, conn: Connection) -> None:
        if not self._statement_timeout or conn.dialect.name != "postgresql":
            return
        timeout_ms = max(1, int(self._statement_timeout * 1000))
        # SET LOCAL: vale solo para la transacción del snapshot
        conn.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))

    def list_devices(self) -> List[DirectoryEntry]:
        with self._engine.connect() as conn:
            self._apply_statement_timeout(conn)
            device_rows = conn.execute(
                text(
                    """
                    SELECT serial_number, device_id, asset_tag, name
                    FROM devices
                    ORDER BY serial_number ASC
                    """
                )
            ).mappings().all()

            documents: Dict[str, Dict[str, Any]] = {}
            for module_name in DIRECTORY_MODULES:
                table = MODULE_TABLES[module_name]
                for row in conn.execute(text(f"SELECT device_id, data FROM {table}")).mappings():
                    documents.setdefault(row["device_id"], {})[module_name] = loads_document(
                        row["data"], context=f"{table}:{row['device_id']}"
                    )

        entries = [
            DirectoryEntry(
                serial_number=row["serial_number"],
                device_id=row["device_id"],
                asset_tag=row["asset_tag"],
                name=row["name"],
                modules=documents.get(row["device_id"], {}),
            )
            for row in device_rows
        ]
        logger.debug("[RESOLVER] Directory snapshot loaded devices=%d", len(entries))
        return entries
