from cloudguard.alerts.store import AlertStore
from cloudguard.api.app import create_app
from cloudguard.config import Settings

app = create_app(store=AlertStore(), settings=Settings())


def test_status_endpoint_documents_error_examples():
    spec = app.openapi()
    put = spec.get("paths", {}).get("/alerts/{alert_id}/status", {}).get("put", {})
    responses = put.get("responses", {})
    assert "400" in responses and "404" in responses

    ex_400 = responses["400"]["content"]["application/json"]["example"]
    ex_404 = responses["404"]["content"]["application/json"]["example"]
    assert ex_400["error"]["code"] == "INVALID_TRANSITION"
    assert ex_404["error"]["code"] == "NOT_FOUND"


def test_status_update_has_example():
    spec = app.openapi()
    comp_example = spec.get("components", {}).get("schemas", {}).get("StatusUpdate", {}).get("example")
    assert comp_example == {"status": "Acknowledged"}


def test_core_paths_present():
    paths = app.openapi()["paths"]
    for p in ("/health", "/alerts", "/alerts/stats", "/alerts/{alert_id}", "/alerts/{alert_id}/status"):
        assert p in paths
