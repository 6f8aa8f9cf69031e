"""Validación de tipos de evento.

Conjunto cerrado de severidades. Un evento con tipo fuera del conjunto
se descarta antes del INSERT, nunca se guarda marcado.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

EVENT_TYPES = frozenset({"success", "warning", "error", "info", "system"})

# Claves aceptadas para el tipo, en orden de prioridad
EVENT_TYPE_KEYS = ("eventType", "level", "type")


def normalize_event_type(value: Any) -> Optional[str]:
    """Devuelve el tipo normalizado en minúsculas, o None si no es válido."""
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    if normalized in EVENT_TYPES:
        return normalized
    return None


def extract_event_type(event: Mapping[str, Any]) -> Optional[str]:
    """Lee el tipo crudo de un evento (eventType, luego level, luego type)."""
    for key in EVENT_TYPE_KEYS:
        raw = event.get(key)
        if raw:
            return raw
    return None
