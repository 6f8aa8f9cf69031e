"""Fan-out de documentos de módulo a sus tablas.

Una fila por (device_id, módulo); cada escritura reemplaza el documento
anterior completo (latest-wins, sin historial).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection

from ..core.domain.modules import is_storable_document, resolve_module_table
from ..infrastructure.persistence.codec import dumps_document

logger = logging.getLogger(__name__)


@dataclass
class FanOutResult:
    processed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def _upsert_module(conn: Connection, table: str, device_id: str, document: Any, now: str) -> None:
    # table viene del mapa estático de módulos, nunca del payload
    conn.execute(
        text(
            f"""
            INSERT INTO {table} (device_id, data, collected_at, updated_at)
            VALUES (:device_id, :data, :now, :now)
            ON CONFLICT (device_id) DO UPDATE SET
                data = excluded.data,
                collected_at = excluded.collected_at,
                updated_at = excluded.updated_at
            """
        ),
        {"device_id": device_id, "data": dumps_document(document), "now": now},
    )


def store_modules(
    conn: Connection,
    *,
    device_id: str,
    module_data: Mapping[str, Any],
    now: str,
) -> FanOutResult:
    """Upsert de cada módulo reconocido.

    Módulos desconocidos o con documento no estructurado se loguean y se
    omiten sin abortar el batch.
    """
    result = FanOutResult()

    for module_name, document in module_data.items():
        table = resolve_module_table(module_name)
        if table is None:
            logger.warning(
                "[INGEST] Unknown module '%s' skipped device_id=%s",
                module_name,
                device_id,
            )
            result.skipped.append(module_name)
            continue

        if not is_storable_document(document):
            logger.warning(
                "[INGEST] Module '%s' document is %s, expected object or list; skipped device_id=%s",
                module_name,
                type(document).__name__,
                device_id,
            )
            result.skipped.append(module_name)
            continue

        _upsert_module(conn, table, device_id, document, now)
        result.processed.append(module_name)
        logger.debug("[INGEST] Stored %s data for device_id=%s", module_name, device_id)

    return result
