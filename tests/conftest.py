"""Fixtures compartidas: BD SQLite en memoria, notifier de prueba y payloads."""

from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from telemetry_api.infrastructure.cache.invalidation import CacheInvalidationNotifier
from telemetry_api.infrastructure.persistence import ensure_schema
from telemetry_api.ingest import IngestionCoordinator


class RecordingNotifier(CacheInvalidationNotifier):
    """Notifier que guarda los mensajes enviados."""

    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    def _send(self, message: Dict[str, Any]) -> bool:
        self.messages.append(message)
        return True


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    """Engine SQLite en memoria compartido entre threads."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def coordinator(engine, notifier) -> IngestionCoordinator:
    return IngestionCoordinator(engine, notifier)


@pytest.fixture
def make_payload():
    """Factory de payloads unificados válidos."""

    def _make(
        serial_number: str = "0F33V9G25083HJ",
        device_id: str = "79349310-287d-8166-52fc-0644e27378f7",
        module_data: Optional[Dict[str, Any]] = None,
        metadata: Optional[List[Dict[str, Any]]] = None,
        **device_info: Any,
    ) -> Dict[str, Any]:
        info = {
            "serialNumber": serial_number,
            "deviceId": device_id,
            "clientVersion": "2025.1.0",
        }
        info.update(device_info)
        return {
            "deviceInfo": info,
            "moduleData": module_data if module_data is not None else {
                "inventory": {"deviceName": "Rod Christiansen", "assetTag": "A004733"},
                "hardware": {"processor": "Intel Core i7", "memory": 16},
            },
            "metadata": metadata if metadata is not None else [
                {"eventType": "info", "message": "Data collection completed"},
            ],
        }

    return _make
