from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from cloudguard.alerts.lifecycle import next_status
from cloudguard.core.alert import Alert, MalformedAlert, Status
from cloudguard.view.filters import FilterCriteria, filter_alerts
from cloudguard.view.stats import category_counts, status_counts

log = logging.getLogger("cloudguard.client")


class ClientError(Exception):
    """Non-2xx answer from the API, or a transport failure (status_code None)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class AlertClient:
    """
    Thin httpx wrapper over the alert endpoints. Every call is bounded by `timeout`.

    Pass `transport` (e.g. httpx.MockTransport) to run without a server.
    """

    def __init__(self, base_url: str, *, timeout: float = 5.0, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._http = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def __enter__(self) -> "AlertClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            r = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ClientError(f"{method} {path} failed: {e}") from e

        if r.status_code >= 400:
            code = None
            message = f"HTTP error! status: {r.status_code}"
            try:
                err = r.json().get("error") or {}
                code = err.get("code")
                message = err.get("message") or message
            except (ValueError, AttributeError):
                pass
            raise ClientError(message, status_code=r.status_code, code=code)
        try:
            return r.json()
        except ValueError as e:
            raise ClientError(f"{method} {path} returned invalid JSON", status_code=r.status_code) from e

    def fetch_alerts(self, params: Optional[Dict[str, str]] = None) -> List[Alert]:
        data = self._request("GET", "/alerts", params=params or None)
        # tolerate a non-list body the same way the dashboard does
        rows = data if isinstance(data, list) else []
        try:
            return [Alert.from_dict(row) for row in rows]
        except MalformedAlert as e:
            raise ClientError(f"Backend sent a malformed alert: {e}") from e

    def fetch_stats(self) -> Dict[str, Dict[str, int]]:
        return self._request("GET", "/alerts/stats")

    def update_status(self, alert_id: str, status: Status) -> Alert:
        row = self._request("PUT", f"/alerts/{alert_id}/status", json={"status": status.value})
        try:
            return Alert.from_dict(row)
        except MalformedAlert as e:
            raise ClientError(f"Backend sent a malformed alert: {e}") from e


class DashboardModel:
    """
    Client-side view state: last fetched alerts plus the active filter.

    A failed refresh records the error but keeps the alerts already on screen.
    """

    def __init__(self, client: AlertClient) -> None:
        self.client = client
        self.alerts: List[Alert] = []
        self.error: Optional[str] = None
        self.last_fetch: Optional[datetime] = None
        self.criteria = FilterCriteria()
        self._lock = threading.Lock()

    def refresh(self) -> bool:
        try:
            alerts = self.client.fetch_alerts()
        except ClientError as e:
            log.warning("Error fetching alerts from backend: %s", e)
            with self._lock:
                self.error = str(e)
            return False

        with self._lock:
            self.alerts = alerts
            self.error = None
            self.last_fetch = datetime.now(timezone.utc)
        log.debug("Fetched %d alerts from backend", len(alerts))
        return True

    def set_filter(self, name: str, value: str) -> None:
        with self._lock:
            self.criteria = self.criteria.with_value(name, value)

    def visible(self) -> List[Alert]:
        with self._lock:
            return list(filter_alerts(self.alerts, self.criteria))

    def statistics(self) -> Dict[str, int]:
        with self._lock:
            return status_counts(self.alerts)

    def category_counts(self) -> Dict[str, int]:
        with self._lock:
            return category_counts(self.alerts)

    def advance(self, alert_id: str) -> Optional[Alert]:
        """
        Send the next lifecycle status for one alert and mirror it locally on success.

        Returns the locally updated alert, or None when the alert is unknown here or
        already Resolved. Server rejections propagate as ClientError.
        """
        with self._lock:
            current = next((a for a in self.alerts if a.id == alert_id), None)
        if current is None:
            return None
        target = next_status(current.status)
        if target is None:
            return None

        self.client.update_status(alert_id, target)

        # optimistic local update; the next refresh brings the server's view
        with self._lock:
            self.alerts = [replace(a, status=target) if a.id == alert_id else a for a in self.alerts]
            updated = next((a for a in self.alerts if a.id == alert_id), None)
        log.info("Alert %s status updated to %s", alert_id, target.value)
        return updated


def poll(model: DashboardModel, *, interval: float = 3.0, stop: Optional[threading.Event] = None,
         max_cycles: Optional[int] = None,
         on_refresh: Optional[Callable[[DashboardModel, bool], None]] = None) -> int:
    """
    Refresh `model` immediately and then every `interval` seconds until `stop` is set
    or `max_cycles` refreshes have run. Returns the number of refreshes attempted.

    `on_refresh(model, ok)` runs after each refresh.
    """
    stop = stop or threading.Event()
    cycles = 0
    while not stop.is_set():
        ok = model.refresh()
        cycles += 1
        if on_refresh is not None:
            on_refresh(model, ok)
        if max_cycles is not None and cycles >= max_cycles:
            break
        if stop.wait(interval):
            break
    return cycles
