"""
Tests for the /api/netsuite/sync HTTP endpoint.

Run with:
    pytest test_sync_endpoint.py
"""

import importlib
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import main
from netsuite_sync.config import NetSuiteConfig
from netsuite_sync.memory_store import InMemoryStore

SYNC_URL = "/api/netsuite/sync"


@pytest.fixture
def client():
    main.limiter.enabled = False
    main.app.dependency_overrides[main.require_auth] = lambda: {"sub": "admin-uuid", "email": "admin@example.nl"}
    main.app.state.store = InMemoryStore()
    main.app.state.netsuite_config = NetSuiteConfig()
    main.app.state.netsuite_transport = None
    main.app.state.audit_logger = None
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def test_preflight_returns_cors_headers(client):
    response = client.options(SYNC_URL, headers={"Origin": "https://admin.example.nl"})
    assert response.status_code == 200
    assert response.text == "ok"
    assert response.headers["access-control-allow-origin"] == "*"
    assert "content-type" in response.headers["access-control-allow-headers"]


def test_csv_import_summary(client):
    response = client.post(SYNC_URL, json={
        "type": "csv_import",
        "csvData": [{"email": "a@example.nl", "first_name": "Anne"}, {"email": ""}],
        "triggeredBy": "admin-7",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["processed"], body["created"], body["updated"], body["failed"]) == (2, 1, 0, 1)
    assert body["errors"] == [{"key": "row 2", "error": "Missing email"}]
    log = main.app.state.store.sync_logs[body["sync_id"]]
    assert log["triggered_by"] == "admin-7"


def test_csv_text_is_parsed(client):
    response = client.post(SYNC_URL, json={
        "type": "csv_import",
        "csvText": "email,first_name\nb@example.nl,Bert\n",
    })

    body = response.json()
    assert body["created"] == 1
    log = main.app.state.store.sync_logs[body["sync_id"]]
    assert log["triggered_by"] == "admin-uuid"


def test_full_sync_without_credentials_is_500(client):
    response = client.post(SYNC_URL, json={"type": "full"})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "credentials not configured" in body["error"]


def test_full_sync_with_fake_netsuite(client):
    def handler(request):
        return httpx.Response(200, json={
            "items": [{"id": "1", "entityid": "V-1", "email": "x@example.nl", "firstname": "X", "lastname": "Y"}],
            "hasMore": False,
        })

    main.app.state.netsuite_config = NetSuiteConfig(
        account_id="1234567", consumer_key="ck", consumer_secret="cs", token_id="t", token_secret="ts"
    )
    main.app.state.netsuite_transport = httpx.MockTransport(handler)

    response = client.post(SYNC_URL, json={"type": "full"})

    assert response.status_code == 200
    assert response.json()["created"] == 1


@pytest.mark.parametrize("payload,message", [
    ({"type": "weekly"}, "Invalid sync type"),
    ({"type": "csv_import"}, "csv_import requires"),
    ({"type": "csv_import", "csvData": "a,b"}, "csv_import requires"),
])
def test_bad_requests_are_400(client, payload, message):
    response = client.post(SYNC_URL, json=payload)
    assert response.status_code == 400
    assert message in response.json()["error"]
    assert main.app.state.store.sync_logs == {}


def test_invalid_json_is_400(client):
    response = client.post(SYNC_URL, content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400


def test_non_utf8_body_is_400(client):
    response = client.post(SYNC_URL, content=b'{"type": "\xff"}', headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert main.app.state.store.sync_logs == {}


def test_token_email_is_trigger_without_subject(client):
    main.app.dependency_overrides[main.require_auth] = lambda: {"email": "ops@example.nl"}
    body = client.post(SYNC_URL, json={"type": "csv_import", "csvData": []}).json()
    assert main.app.state.store.sync_logs[body["sync_id"]]["triggered_by"] == "ops@example.nl"


def test_allowed_origins_restrict_cors(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://admin.example.nl")
    restricted = importlib.reload(main)
    try:
        restricted.limiter.enabled = False
        restricted.app.dependency_overrides[restricted.require_auth] = lambda: {"sub": "admin-uuid"}
        restricted.app.state.store = InMemoryStore()
        restricted.app.state.audit_logger = None
        client = TestClient(restricted.app)
        payload = {"type": "csv_import", "csvData": []}

        refused = client.post(SYNC_URL, json=payload, headers={"Origin": "https://evil.example"})
        assert refused.status_code == 200
        assert "access-control-allow-origin" not in refused.headers

        allowed = client.post(SYNC_URL, json=payload, headers={"Origin": "https://admin.example.nl"})
        assert allowed.headers["access-control-allow-origin"] == "https://admin.example.nl"

        preflight = client.options(SYNC_URL, headers={"Origin": "https://evil.example"})
        assert "access-control-allow-origin" not in preflight.headers
    finally:
        restricted.app.dependency_overrides.clear()
        monkeypatch.delenv("ALLOWED_ORIGINS")
        importlib.reload(main)


def test_missing_token_is_401():
    main.app.state.store = InMemoryStore()
    main.limiter.enabled = False
    response = TestClient(main.app).post(SYNC_URL, json={"type": "csv_import", "csvData": []})
    assert response.status_code == 401


def test_health(client):
    body = client.get("/health").json()
    assert body == {"status": "ok", "store": "memory", "netsuite_configured": False}
