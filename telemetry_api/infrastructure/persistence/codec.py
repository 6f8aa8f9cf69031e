"""Conversión de valores entre Python y columnas de texto/fecha."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Fracción de segundos de cualquier largo (ej: .NET emite 7 dígitos)
_FRACTION_PATTERN = re.compile(r"\.(\d+)")


def _normalize_fraction(match: "re.Match[str]") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parsea ISO-8601 (acepta sufijo Z y fracciones de cualquier largo). None si no es parseable."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        normalized = _FRACTION_PATTERN.sub(_normalize_fraction, value.strip(), count=1)
        parsed = datetime.fromisoformat(normalized.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_iso(value: Any) -> Optional[str]:
    """Normaliza fechas leídas de la BD (datetime en PostgreSQL, str en SQLite)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def dumps_document(document: Any) -> str:
    return json.dumps(document, default=str)


def loads_document(raw: Any, *, context: str = "") -> Any:
    """Decodifica una columna JSON; documentos corruptos se devuelven como {}."""
    if raw is None:
        return {}
    if isinstance(raw, (dict, list)):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("[DB] Undecodable JSON document %s", context)
        return {}
