"""Coordinador de ingesta de payloads unificados.

Una transacción por payload:
1. Chequeo de identidad (serialNumber <-> deviceId)
2. Upsert del dispositivo
3. Fan-out de módulos
4. Validación e inserción de eventos

Cualquier fallo interno hace rollback de todo. Después del COMMIT se emite
la señal de invalidación de caché, fuera de la transacción.

El coordinador es request-scoped y no guarda estado compartido.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import IngestError, StorageError
from ..infrastructure.cache.invalidation import (
    CacheInvalidationNotifier,
    NullInvalidationNotifier,
)
from ..infrastructure.persistence.codec import utc_now_iso
from .device_registry import check_identity, upsert_device
from .event_store import store_events
from .module_store import store_modules
from .payload import UnifiedPayload

logger = logging.getLogger(__name__)


@dataclass
class IngestSummary:
    """Resumen devuelto al llamador para detectar aceptación parcial."""
    status: str
    device_id: str
    serial_number: str
    modules_processed: List[str] = field(default_factory=list)
    modules_skipped: List[str] = field(default_factory=list)
    events_processed: int = 0
    events_rejected: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "deviceId": self.device_id,
            "serialNumber": self.serial_number,
            "modulesProcessed": list(self.modules_processed),
            "modulesSkipped": list(self.modules_skipped),
            "eventsProcessed": self.events_processed,
            "eventsRejected": self.events_rejected,
        }


class IngestionCoordinator:
    """Registra identidad, distribuye módulos y guarda eventos de forma atómica."""

    def __init__(
        self,
        engine: Engine,
        notifier: Optional[CacheInvalidationNotifier] = None,
    ):
        self._engine = engine
        self._notifier = notifier or NullInvalidationNotifier()

    def ingest(self, payload: Any) -> IngestSummary:
        """Procesa un payload unificado.

        Raises:
            ValidationError: identidad ausente o payload mal formado (sin escrituras)
            IdentityConflictError: el par serial/deviceId choca con otro dispositivo
            StorageError: fallo de BD; rollback completo, reintentable
        """
        parsed = UnifiedPayload.parse(payload)
        serial_number = parsed.serial_number
        device_id = parsed.device_id

        logger.info(
            "[INGEST] Processing device serial=%s device_id=%s modules=%d events=%d",
            serial_number,
            device_id,
            len(parsed.module_data),
            len(parsed.events),
        )

        now = utc_now_iso()
        try:
            with self._engine.begin() as conn:
                existed = check_identity(conn, serial_number, device_id)
                upsert_device(
                    conn,
                    serial_number=serial_number,
                    device_id=device_id,
                    device_info=parsed.device_info,
                    now=now,
                )
                fan_out = store_modules(
                    conn,
                    device_id=device_id,
                    module_data=parsed.module_data,
                    now=now,
                )
                events = store_events(
                    conn,
                    device_id=device_id,
                    events=parsed.events,
                    now=now,
                )
        except IngestError:
            raise
        except SQLAlchemyError as e:
            logger.exception(
                "[INGEST] Transaction rolled back serial=%s err=%s",
                serial_number,
                type(e).__name__,
            )
            raise StorageError(f"Storage failure: {type(e).__name__}: {e}") from e

        summary = IngestSummary(
            status="success",
            device_id=device_id,
            serial_number=serial_number,
            modules_processed=fan_out.processed,
            modules_skipped=fan_out.skipped,
            events_processed=events.stored,
            events_rejected=events.rejected,
        )

        logger.info(
            "[INGEST] Committed serial=%s new_device=%s modules=%d/%d events=%d/%d",
            serial_number,
            not existed,
            len(fan_out.processed),
            len(parsed.module_data),
            events.stored,
            len(parsed.events),
        )

        self._notify(serial_number, device_id)
        return summary

    def _notify(self, serial_number: str, device_id: str) -> None:
        # Best-effort: nunca afecta el resultado de la transacción ya comprometida
        try:
            self._notifier.invalidate_device(serial_number, device_id)
        except Exception:
            logger.exception("[INGEST] Cache invalidation failed serial=%s", serial_number)
