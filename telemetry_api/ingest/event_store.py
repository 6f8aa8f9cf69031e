"""Validación e inserción de eventos.

Eventos con tipo fuera del conjunto cerrado se descartan antes del INSERT
y se cuentan como rechazados; nunca abortan el batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timezone
from typing import Any, Iterable, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection

from ..core.domain.events import EVENT_TYPES, extract_event_type, normalize_event_type
from ..infrastructure.persistence.codec import dumps_document, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_EVENT_MODULE = "system"

_INSERT_EVENT_SQL = text(
    """
    INSERT INTO events (device_id, event_type, module, message, details, timestamp, created_at)
    VALUES (:device_id, :event_type, :module, :message, :details, :timestamp, :now)
    """
)


@dataclass
class EventStoreResult:
    stored: int = 0
    rejected: int = 0


def _event_row(device_id: str, event: Mapping[str, Any], event_type: str, now: str) -> dict:
    ts = parse_timestamp(event.get("timestamp"))
    details = event.get("details")
    return {
        "device_id": device_id,
        "event_type": event_type,
        "module": str(event.get("module") or DEFAULT_EVENT_MODULE),
        "message": str(event.get("message") or ""),
        "details": dumps_document(details if details is not None else {}),
        "timestamp": ts.astimezone(timezone.utc).isoformat() if ts else now,
        "now": now,
    }


def store_events(
    conn: Connection,
    *,
    device_id: str,
    events: Iterable[Any],
    now: str,
) -> EventStoreResult:
    result = EventStoreResult()
    rows = []

    for event in events:
        if not isinstance(event, Mapping):
            logger.warning("[INGEST] Non-object event blocked device_id=%s", device_id)
            result.rejected += 1
            continue

        raw_type = extract_event_type(event)
        event_type = normalize_event_type(raw_type)
        if event_type is None:
            logger.warning(
                "[INGEST] Invalid event type '%s' blocked. Must be one of: %s",
                raw_type,
                ", ".join(sorted(EVENT_TYPES)),
            )
            result.rejected += 1
            continue

        rows.append(_event_row(device_id, event, event_type, now))

    if rows:
        conn.execute(_INSERT_EVENT_SQL, rows)
    result.stored = len(rows)
    return result
