from fastapi.testclient import TestClient

from cloudguard.alerts.store import AlertStore
from cloudguard.api.app import create_app
from cloudguard.config import Settings
from cloudguard.core.alert import Alert, Category, Severity, Status


def make_client():
    store = AlertStore([
        Alert(id="A1", severity=Severity.HIGH, category=Category.CVE, description="x",
              status=Status.NEW, timestamp="2025-01-01T00:00:00Z"),
    ])
    return TestClient(create_app(store=store, settings=Settings())), store


def test_request_id_header_roundtrip():
    client, _ = make_client()
    r = client.get("/health")
    assert r.status_code == 200
    assert "x-request-id" in r.headers
    assert r.json()["request_id"] == r.headers["x-request-id"]


def test_request_id_passthrough():
    client, _ = make_client()
    r = client.get("/health", headers={"x-request-id": "myid123"})
    assert r.headers["x-request-id"] == "myid123"
    assert r.json()["request_id"] == "myid123"


def test_unknown_alert_is_404_and_store_untouched():
    client, store = make_client()
    before = [a.to_dict() for a in store.list()]
    r = client.put("/alerts/nope/status", json={"status": "Acknowledged"}, headers={"x-request-id": "rid-1"})
    assert r.status_code == 404
    j = r.json()
    assert j["ok"] is False
    assert j["request_id"] == "rid-1"
    assert j["error"]["code"] == "NOT_FOUND"
    assert j["error"]["details"]["alert_id"] == "nope"
    assert [a.to_dict() for a in store.list()] == before


def test_get_unknown_alert_is_404():
    client, _ = make_client()
    assert client.get("/alerts/nope").status_code == 404


def test_skipping_a_stage_is_invalid_transition():
    client, store = make_client()
    r = client.put("/alerts/A1/status", json={"status": "Resolved"})
    assert r.status_code == 400
    j = r.json()
    assert j["error"]["code"] == "INVALID_TRANSITION"
    assert j["error"]["details"] == {"current": "New", "requested": "Resolved", "allowed": "Acknowledged"}
    assert j["hint"]
    assert store.get("A1").status is Status.NEW


def test_status_value_is_folded():
    client, _ = make_client()
    r = client.put("/alerts/A1/status", json={"status": "acknowledged"})
    assert r.status_code == 200
    assert r.json()["status"] == "Acknowledged"


def test_missing_body_is_malformed_request():
    client, _ = make_client()
    r = client.put("/alerts/A1/status")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "MALFORMED_REQUEST"


def test_missing_status_field_is_malformed_request():
    client, _ = make_client()
    r = client.put("/alerts/A1/status", json={"state": "Acknowledged"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "MALFORMED_REQUEST"


def test_wrong_typed_status_is_malformed_request():
    client, store = make_client()
    for bad in (5, None, ["Acknowledged"], "Closed"):
        r = client.put("/alerts/A1/status", json={"status": bad})
        assert r.status_code == 400, bad
        assert r.json()["error"]["code"] == "MALFORMED_REQUEST"
    assert store.get("A1").status is Status.NEW


def test_duplicate_create_is_409():
    client, _ = make_client()
    r = client.post("/alerts", json={"id": "A1", "severity": "High", "category": "CVE", "description": "dup"})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "DUPLICATE_ALERT"


def test_create_with_unknown_category_is_malformed():
    client, _ = make_client()
    r = client.post("/alerts", json={"severity": "High", "category": "DNS", "description": "x"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "MALFORMED_REQUEST"


def test_unhandled_error_is_structured_500(monkeypatch):
    client, store = make_client()
    client = TestClient(client.app, raise_server_exceptions=False)

    def boom():
        raise RuntimeError("boom")

    monkeypatch.setattr(store, "list", boom)
    r = client.get("/alerts")
    assert r.status_code == 500
    j = r.json()
    assert j["error"]["code"] == "INTERNAL_ERROR"
    assert j["error"]["details"]["type"] == "RuntimeError"
