"""Mapa de módulos de telemetría -> tabla de almacenamiento.

Configuración estática: se construye una vez al importar y es de solo lectura.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

MODULE_TABLES: Mapping[str, str] = MappingProxyType({
    "applications": "applications",
    "displays": "displays",
    "hardware": "hardware",
    "installs": "installs",
    "inventory": "inventory",
    "management": "management",
    "network": "network",
    "printers": "printers",
    "profiles": "profiles",
    "security": "security",
    "system": "system",
})


def resolve_module_table(module_name: str) -> Optional[str]:
    """Tabla destino del módulo, o None si el nombre no es reconocido."""
    return MODULE_TABLES.get(module_name)


def is_storable_document(document: object) -> bool:
    """Un documento de módulo debe ser un contenedor JSON (objeto o lista)."""
    return isinstance(document, (dict, list))
