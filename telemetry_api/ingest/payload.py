"""Contrato del payload unificado de ingesta.

Formato esperado:
{
    "deviceInfo": {"serialNumber": "...", "deviceId": "...", "clientVersion": "...", ...},
    "moduleData": {"inventory": {...}, "hardware": {...}},
    "metadata": [{"eventType": "info", "message": "...", "details": {...}, "timestamp": "..."}]
}

La validación ocurre ANTES de abrir la transacción: un payload inválido
no escribe nada.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from ..errors import ValidationError


def _clean_identity_field(device_info: Mapping[str, Any], key: str) -> str:
    value = device_info.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            "Device must have both serialNumber and deviceId "
            f"(missing or empty: {key})"
        )
    return value.strip()


@dataclass(frozen=True)
class UnifiedPayload:
    serial_number: str
    device_id: str
    device_info: Mapping[str, Any]
    module_data: Dict[str, Any] = field(default_factory=dict)
    events: List[Any] = field(default_factory=list)

    @classmethod
    def parse(cls, payload: Any) -> "UnifiedPayload":
        """Valida la forma del payload y extrae la identidad.

        Raises:
            ValidationError: si falta identidad o las secciones tienen tipo incorrecto
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Payload must be a JSON object")

        device_info = payload.get("deviceInfo")
        if not isinstance(device_info, Mapping):
            raise ValidationError("Payload must contain a deviceInfo object")

        serial_number = _clean_identity_field(device_info, "serialNumber")
        device_id = _clean_identity_field(device_info, "deviceId")

        module_data = payload.get("moduleData")
        if module_data is None:
            module_data = {}
        if not isinstance(module_data, Mapping):
            raise ValidationError("moduleData must be an object keyed by module name")

        events = payload.get("metadata")
        if events is None:
            events = []
        if not isinstance(events, list):
            raise ValidationError("metadata must be a list of events")

        return cls(
            serial_number=serial_number,
            device_id=device_id,
            device_info=device_info,
            module_data=dict(module_data),
            events=list(events),
        )
