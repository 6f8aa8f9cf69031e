"""Clasificador de identificadores de dispositivo.

Función pura y total: cualquier string recibe exactamente un tipo.
La clasificación solo orienta el logging y el tipo reportado cuando no hay
match; el resolver prueba todas las estrategias igualmente.

Orden de evaluación (gana la primera regla):
1. UUID 8-4-4-4-12 hexadecimal → uuid
2. Contiene espacios → deviceName
3. Una letra + dígitos (ej: A004733) → assetTag
4. Gramática de hostname con al menos un '.' o '-' → hostname
5. Default → serialNumber
"""

from __future__ import annotations

import re

from ..domain.identifiers import IdentifierType

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
ASSET_TAG_PATTERN = re.compile(r"^[A-Za-z][0-9]+$")
HOSTNAME_PATTERN = re.compile(r"^[A-Za-z0-9]+(?:[.-][A-Za-z0-9]+)*$")
WHITESPACE_PATTERN = re.compile(r"\s")


def classify_identifier(identifier: str) -> IdentifierType:
    if UUID_PATTERN.match(identifier):
        return IdentifierType.UUID

    if WHITESPACE_PATTERN.search(identifier):
        return IdentifierType.DEVICE_NAME

    if ASSET_TAG_PATTERN.match(identifier):
        return IdentifierType.ASSET_TAG

    if HOSTNAME_PATTERN.match(identifier) and ("." in identifier or "-" in identifier):
        return IdentifierType.HOSTNAME

    return IdentifierType.SERIAL_NUMBER
