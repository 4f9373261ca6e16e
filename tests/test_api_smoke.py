from fastapi.testclient import TestClient

from cloudguard.alerts.store import AlertStore
from cloudguard.api.app import create_app
from cloudguard.config import Settings
from cloudguard.core.alert import Alert, Category, Severity, Status


def make_client(*alerts):
    return TestClient(create_app(store=AlertStore(alerts), settings=Settings()))


def _alert(alert_id, severity=Severity.HIGH, category=Category.CVE, status=Status.NEW, description="x"):
    return Alert(id=alert_id, severity=severity, category=category, description=description,
                 status=status, timestamp="2025-01-01T00:00:00Z")


def test_health():
    r = make_client().get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_list_alerts_returns_records():
    client = make_client(_alert("A1"), _alert("A2", Severity.LOW, Category.S3, Status.IN_PROGRESS))
    r = client.get("/alerts")
    assert r.status_code == 200
    j = r.json()
    assert [a["id"] for a in j] == ["A1", "A2"]
    assert j[1] == {
        "id": "A2", "severity": "Low", "category": "S3", "status": "In-Progress",
        "description": "x", "timestamp": "2025-01-01T00:00:00Z",
    }


def test_advance_scenario_through_http():
    client = make_client(_alert("A1"))
    for expected in ("Acknowledged", "In-Progress", "Resolved"):
        r = client.put("/alerts/A1/status", json={"status": expected})
        assert r.status_code == 200, r.text
        assert r.json()["status"] == expected

    r = client.put("/alerts/A1/status", json={"status": "Resolved"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_TRANSITION"
    assert client.get("/alerts/A1").json()["status"] == "Resolved"


def test_list_alerts_with_query_filters():
    client = make_client(
        _alert("H1", Severity.HIGH, status=Status.IN_PROGRESS, description="web server cve"),
        _alert("L1", Severity.LOW, description="web bucket"),
    )
    assert [a["id"] for a in client.get("/alerts", params={"severity": "high"}).json()] == ["H1"]
    assert [a["id"] for a in client.get("/alerts", params={"status": "inprogress"}).json()] == ["H1"]
    assert [a["id"] for a in client.get("/alerts", params={"search": "bucket"}).json()] == ["L1"]
    assert client.get("/alerts", params={"search": "nothing-like-this"}).json() == []


def test_stats_endpoint():
    client = make_client(_alert("A1"), _alert("A2", category=Category.IAM, status=Status.RESOLVED))
    j = client.get("/alerts/stats").json()
    assert j["statuses"] == {"new": 1, "acknowledged": 0, "inProgress": 0, "resolved": 1, "total": 2}
    assert j["categories"]["IAM"] == 1


def test_create_alert_starts_new():
    client = make_client()
    r = client.post("/alerts", json={"severity": "medium", "category": "network", "description": "scan"})
    assert r.status_code == 201, r.text
    j = r.json()
    assert j["status"] == "New"
    assert j["severity"] == "Medium"
    assert j["id"].startswith("ALT-")
    assert j["timestamp"]
    assert client.get(f"/alerts/{j['id']}").status_code == 200
