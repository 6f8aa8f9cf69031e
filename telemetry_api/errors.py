"""Errores de ingesta.

- ValidationError: faltan campos de identidad, se rechaza sin escribir nada.
- IdentityConflictError: el par serial/deviceId choca con uno ya registrado.
  Requiere intervención del operador, no se reintenta.
- StorageError: cualquier otro fallo transaccional. Rollback completo;
  el payload entero se puede reintentar (todo es upsert).
"""

from __future__ import annotations

from typing import Optional, Tuple


class IngestError(Exception):
    """Base de errores del coordinador de ingesta."""

    code = "INGEST_ERROR"
    status_code = 500


class ValidationError(IngestError):
    code = "VALIDATION_ERROR"
    status_code = 400


class IdentityConflictError(IngestError):
    code = "IDENTITY_CONFLICT"
    status_code = 409

    def __init__(
        self,
        serial_number: str,
        device_id: str,
        existing: Optional[Tuple[str, str]] = None,
    ):
        self.serial_number = serial_number
        self.device_id = device_id
        self.existing = existing
        if existing is not None:
            message = (
                f"Device identity conflict: serialNumber '{serial_number}' and "
                f"deviceId '{device_id}' must be paired 1:1. Found existing device "
                f"with serialNumber '{existing[0]}', deviceId '{existing[1]}'"
            )
        else:
            message = (
                f"Device identity conflict: serialNumber '{serial_number}' or "
                f"deviceId '{device_id}' is already registered to another device"
            )
        super().__init__(message)


class StorageError(IngestError):
    code = "STORAGE_ERROR"
    status_code = 500
