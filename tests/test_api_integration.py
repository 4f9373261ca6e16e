import os
import time
import httpx
import pytest

SERVER = os.getenv("SERVER_URL", "http://localhost:3000")

pytestmark = pytest.mark.skipif(os.getenv("INTEGRATION") != "true", reason="Integration tests are disabled")


def wait_for_health(url: str, timeout: int = 30):
    client = httpx.Client()
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            r = client.get(f"{url}/health", timeout=2.0)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(1)
    return False


def test_create_and_advance():
    assert wait_for_health(SERVER, timeout=30), "Server did not become healthy in time"

    r = httpx.post(f"{SERVER}/alerts", json={"severity": "High", "category": "CVE", "description": "integration"}, timeout=10.0)
    assert r.status_code == 201
    alert_id = r.json()["id"]

    r = httpx.put(f"{SERVER}/alerts/{alert_id}/status", json={"status": "Acknowledged"}, timeout=10.0)
    assert r.status_code == 200
    assert r.json()["status"] == "Acknowledged"

    ids = [a["id"] for a in httpx.get(f"{SERVER}/alerts", timeout=10.0).json()]
    assert alert_id in ids
