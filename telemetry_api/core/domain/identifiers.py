"""Tipos de identificador de dispositivo y resultado de resolución."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class IdentifierType(str, Enum):
    UUID = "uuid"
    ASSET_TAG = "assetTag"
    SERIAL_NUMBER = "serialNumber"
    DEVICE_NAME = "deviceName"
    HOSTNAME = "hostname"


@dataclass(frozen=True)
class ResolutionResult:
    """Resultado efímero de resolver un identificador (nunca se persiste)."""
    found: bool
    original_identifier: str
    identifier_type: IdentifierType
    serial_number: Optional[str] = None

    @classmethod
    def not_found(cls, identifier: str, identifier_type: IdentifierType) -> "ResolutionResult":
        return cls(
            found=False,
            original_identifier=identifier,
            identifier_type=identifier_type,
        )

    def to_dict(self) -> dict:
        data = {
            "found": self.found,
            "originalIdentifier": self.original_identifier,
            "identifierType": self.identifier_type.value,
        }
        if self.serial_number is not None:
            data["serialNumber"] = self.serial_number
        return data
