"""Tests de tipos de evento y del mapa de módulos."""

import pytest

from telemetry_api.core.domain.events import (
    EVENT_TYPES,
    extract_event_type,
    normalize_event_type,
)
from telemetry_api.core.domain.modules import (
    MODULE_TABLES,
    is_storable_document,
    resolve_module_table,
)


# =============================================================================
# TESTS: Tipos de evento
# =============================================================================

class TestNormalizeEventType:

    @pytest.mark.parametrize("value", sorted(EVENT_TYPES))
    def test_accepts_closed_set(self, value):
        assert normalize_event_type(value) == value

    def test_normalizes_case_and_whitespace(self):
        assert normalize_event_type("  WARNING ") == "warning"
        assert normalize_event_type("Error") == "error"

    @pytest.mark.parametrize("value", ["debug", "critical", "", None, 3, ["info"]])
    def test_rejects_everything_else(self, value):
        assert normalize_event_type(value) is None


class TestExtractEventType:

    def test_event_type_key_has_priority(self):
        event = {"eventType": "info", "level": "error", "type": "warning"}
        assert extract_event_type(event) == "info"

    def test_falls_back_to_level_then_type(self):
        assert extract_event_type({"level": "error"}) == "error"
        assert extract_event_type({"type": "success"}) == "success"

    def test_empty_value_is_skipped(self):
        assert extract_event_type({"eventType": "", "level": "system"}) == "system"

    def test_missing_type(self):
        assert extract_event_type({"message": "sin tipo"}) is None


# =============================================================================
# TESTS: Mapa de módulos
# =============================================================================

class TestModuleMap:

    def test_eleven_known_modules(self):
        assert set(MODULE_TABLES) == {
            "applications", "displays", "hardware", "installs", "inventory",
            "management", "network", "printers", "profiles", "security", "system",
        }

    def test_unknown_module(self):
        assert resolve_module_table("bogus") is None
        assert resolve_module_table("Inventory") is None

    def test_map_is_read_only(self):
        with pytest.raises(TypeError):
            MODULE_TABLES["bogus"] = "bogus"

    def test_storable_documents(self):
        assert is_storable_document({"a": 1})
        assert is_storable_document([{"name": "Safari"}])
        assert not is_storable_document("texto")
        assert not is_storable_document(42)
        assert not is_storable_document(None)
