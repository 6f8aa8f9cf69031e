"""Dominio: identificadores, eventos y módulos de telemetría."""

from .events import EVENT_TYPES, extract_event_type, normalize_event_type
from .identifiers import IdentifierType, ResolutionResult
from .modules import MODULE_TABLES, is_storable_document, resolve_module_table

__all__ = [
    "EVENT_TYPES",
    "extract_event_type",
    "normalize_event_type",
    "IdentifierType",
    "ResolutionResult",
    "MODULE_TABLES",
    "is_storable_document",
    "resolve_module_table",
]
