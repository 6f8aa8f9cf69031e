"""Tests HTTP de la API (TestClient + SQLite en memoria)."""

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import text

from telemetry_api.auth import require_api_key
from telemetry_api.infrastructure.cache.invalidation import get_notifier
from telemetry_api.main import create_app
from telemetry_api.rate_limiter import reset_rate_limiter
from telemetry_common.db import get_engine


SERIAL = "0F33V9G25083HJ"
DEVICE_ID = "79349310-287d-8166-52fc-0644e27378f7"


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def client(engine, notifier, monkeypatch):
    monkeypatch.delenv("INGEST_API_KEY", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("NODE_ENV", raising=False)
    monkeypatch.delenv("INGEST_DEBUG_ERRORS", raising=False)
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "0")
    reset_rate_limiter()

    app = create_app()
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_notifier] = lambda: notifier

    # Sin context manager: el lifespan (schema sobre la BD real) no corre
    yield TestClient(app)

    reset_rate_limiter()


@pytest.fixture
def ingested(client, make_payload):
    response = client.post("/ingest/payload", json=make_payload(
        module_data={
            "inventory": {"deviceName": "Rod Christiansen", "assetTag": "A004733"},
            "network": {"hostname": "rod-mbp.local"},
        },
        metadata=[
            {"eventType": "info", "message": "Data collection completed"},
            {"eventType": "warning", "message": "Disk almost full", "details": {"free": "2GB"}},
        ],
    ))
    assert response.status_code == 201
    return response.json()


# =============================================================================
# TESTS: Ingesta
# =============================================================================

class TestIngestEndpoint:

    def test_created_with_summary(self, ingested):
        assert ingested == {
            "status": "success",
            "deviceId": DEVICE_ID,
            "serialNumber": SERIAL,
            "modulesProcessed": ["inventory", "network"],
            "modulesSkipped": [],
            "eventsProcessed": 2,
            "eventsRejected": 0,
        }

    def test_partial_acceptance_visible(self, client, make_payload):
        response = client.post("/ingest/payload", json=make_payload(
            module_data={"inventory": {}, "bogus": {}},
            metadata=[{"eventType": "debug"}],
        ))

        body = response.json()
        assert response.status_code == 201
        assert body["modulesSkipped"] == ["bogus"]
        assert body["eventsRejected"] == 1

    def test_missing_identity_is_400(self, client):
        response = client.post("/ingest/payload", json={"deviceInfo": {"serialNumber": SERIAL}})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_non_object_body_is_400(self, client):
        response = client.post("/ingest/payload", json=["not", "an", "object"])
        assert response.status_code == 400

    def test_identity_conflict_is_409(self, client, ingested, make_payload):
        response = client.post(
            "/ingest/payload",
            json=make_payload(device_id="11111111-2222-3333-4444-555555555555"),
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "IDENTITY_CONFLICT"
        assert SERIAL in body["message"]

    def test_storage_error_is_500_without_details(self, client, engine, make_payload):
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE inventory"))

        response = client.post("/ingest/payload", json=make_payload())

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "STORAGE_ERROR"
        assert "inventory" not in body["message"]

    def test_storage_error_details_in_debug_mode(self, client, engine, make_payload, monkeypatch):
        monkeypatch.setenv("INGEST_DEBUG_ERRORS", "1")
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE inventory"))

        response = client.post("/ingest/payload", json=make_payload())

        assert response.status_code == 500
        assert "inventory" in response.json()["message"]

    def test_rate_limited_device(self, client, make_payload, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "1")
        monkeypatch.setenv("RATE_LIMIT_DEVICE_PER_MIN", "1")
        reset_rate_limiter()

        assert client.post("/ingest/payload", json=make_payload()).status_code == 201
        response = client.post("/ingest/payload", json=make_payload())

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"


# =============================================================================
# TESTS: Resolución
# =============================================================================

class TestResolveEndpoint:

    @pytest.mark.parametrize("identifier, identifier_type", [
        (SERIAL, "serialNumber"),
        (DEVICE_ID, "uuid"),
        ("A004733", "assetTag"),
        ("Rod Christiansen", "deviceName"),
        ("rod-mbp.local", "hostname"),
    ])
    def test_resolves(self, client, ingested, identifier, identifier_type):
        response = client.get(f"/devices/resolve/{identifier}")

        assert response.status_code == 200
        body = response.json()
        assert body["resolved"] is True
        assert body["serialNumber"] == SERIAL
        assert body["identifierType"] == identifier_type
        assert body["redirectUrl"] == f"/device/{SERIAL}"

    def test_not_found_is_404(self, client, ingested):
        response = client.get("/devices/resolve/desktop-ghost")

        assert response.status_code == 404
        body = response.json()
        assert body["resolved"] is False
        assert body["identifierType"] == "hostname"
        assert body["message"] == "No device found for hostname: desktop-ghost"

    def test_rate_limited_identifier(self, client, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "1")
        monkeypatch.setenv("RATE_LIMIT_IDENTIFIER_PER_MIN", "1")
        reset_rate_limiter()

        assert client.get("/devices/resolve/A1").status_code == 404
        assert client.get("/devices/resolve/A1").status_code == 429


# =============================================================================
# TESTS: Lectura de dispositivos
# =============================================================================

class TestDevicesEndpoint:

    def test_list(self, client, ingested):
        response = client.get("/devices")

        assert response.status_code == 200
        devices = response.json()
        assert [d["serialNumber"] for d in devices] == [SERIAL]
        assert devices[0]["status"] == "online"
        assert devices[0]["clientVersion"] == "2025.1.0"

    def test_list_pagination_bounds(self, client):
        assert client.get("/devices?limit=0").status_code == 422
        assert client.get("/devices?limit=1001").status_code == 422
        assert client.get("/devices?offset=-1").status_code == 422

    def test_detail(self, client, ingested):
        response = client.get(f"/devices/{SERIAL}")

        assert response.status_code == 200
        body = response.json()
        assert body["deviceId"] == DEVICE_ID
        assert body["modules"]["inventory"]["data"]["assetTag"] == "A004733"
        assert body["modules"]["network"]["data"] == {"hostname": "rod-mbp.local"}
        assert "hardware" not in body["modules"]
        assert sorted(e["eventType"] for e in body["recentEvents"]) == ["info", "warning"]

    def test_detail_not_found(self, client):
        response = client.get("/devices/UNKNOWN")

        assert response.status_code == 404
        assert response.json()["detail"] == "Device not found: UNKNOWN"


# =============================================================================
# TESTS: Invalidación manual
# =============================================================================

class TestCacheEndpoint:

    def test_invalidate_device(self, client, notifier):
        response = client.post("/cache/invalidate", json={"serialNumber": SERIAL})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["device"] == SERIAL
        assert body["delivered"] is True
        assert notifier.messages[-1]["serialNumber"] == SERIAL

    def test_invalidate_all(self, client, notifier):
        response = client.post("/cache/invalidate", json={"invalidateAll": True})

        assert response.status_code == 200
        assert notifier.messages[-1]["invalidateAll"] is True

    def test_requires_target(self, client):
        assert client.post("/cache/invalidate", json={}).status_code == 400


# =============================================================================
# TESTS: Autenticación y health
# =============================================================================

class TestAuthAndHealth:

    def test_api_key_required_when_configured(self, client, monkeypatch, make_payload):
        monkeypatch.setenv("INGEST_API_KEY", "secret")

        assert client.post("/ingest/payload", json=make_payload()).status_code == 401
        assert client.get("/devices", headers={"X-API-Key": "wrong"}).status_code == 401
        assert client.get("/devices", headers={"X-API-Key": "secret"}).status_code == 200

    def test_non_ascii_api_key_is_401(self, client, monkeypatch):
        monkeypatch.setenv("INGEST_API_KEY", "secret")

        response = client.get("/devices", headers={"X-API-Key": "clé".encode("latin-1")})

        assert response.status_code == 401

    def test_non_ascii_key_rejected_directly(self, monkeypatch):
        monkeypatch.setenv("INGEST_API_KEY", "contraseña")

        with pytest.raises(HTTPException) as exc_info:
            require_api_key(x_api_key="contrasena")
        assert exc_info.value.status_code == 401

        require_api_key(x_api_key="contraseña")

    def test_missing_key_in_production_is_500(self, client, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert client.get("/devices").status_code == 500

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_ready(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"
