from __future__ import annotations

import json
import os
import tempfile
import threading
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from cloudguard.alerts.errors import AlertNotFound, DuplicateAlert, MalformedRequest
from cloudguard.alerts.lifecycle import check_transition
from cloudguard.core.alert import Alert, Status


def iter_jsonl(path: str) -> Iterable[dict]:
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def _atomic_write_jsonl(path: str, rows: list) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    # unique temp file per write; concurrent writers never share one
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=target.name + ".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for r in rows:
                f.write(json.dumps(r, ensure_ascii=False) + "\n")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class AlertStore:
    """
    Canonical, process-owned alert collection.

    Every read and mutation runs under one lock, so concurrent advances of the same
    alert are applied one after the other instead of racing. Callers get copies;
    the only way to change a stored alert is advance_status().

    When `persist_path` is set the whole collection is rewritten as JSONL after each
    mutation. That is a convenience snapshot, not a durability guarantee.
    """

    def __init__(self, alerts: Optional[Iterable[Alert]] = None, *, persist_path: Optional[str] = None) -> None:
        self._lock = threading.Lock()
        self._alerts: Dict[str, Alert] = {}
        self.persist_path = persist_path
        for a in alerts or ():
            self._insert(a)

    def _insert(self, alert: Alert) -> None:
        if alert.id in self._alerts:
            raise DuplicateAlert(alert.id)
        self._alerts[alert.id] = replace(alert)

    def _commit(self, alerts: Dict[str, Alert]) -> None:
        # snapshot first: a failed write leaves the in-memory collection untouched
        if self.persist_path:
            _atomic_write_jsonl(self.persist_path, [a.to_dict() for a in alerts.values()])
        self._alerts = alerts

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)

    def list(self) -> List[Alert]:
        with self._lock:
            return [replace(a) for a in self._alerts.values()]

    def get(self, alert_id: str) -> Alert:
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                raise AlertNotFound(alert_id)
            return replace(alert)

    def add(self, alert: Alert) -> Alert:
        """Store an alert raised by a detection source. New alerts always start at New."""
        if alert.status is not Status.NEW:
            raise MalformedRequest(
                f"New alerts must start as {Status.NEW.value}, got {alert.status.value}.",
                details={"status": alert.status.value},
            )
        with self._lock:
            if alert.id in self._alerts:
                raise DuplicateAlert(alert.id)
            self._commit({**self._alerts, alert.id: replace(alert)})
            return replace(self._alerts[alert.id])

    def advance_status(self, alert_id: str, target: Optional[Status] = None) -> Alert:
        """
        Move one alert a single step along its lifecycle and return the updated copy.

        Raises AlertNotFound for an unknown id and InvalidTransition when the alert is
        already Resolved or `target` is not the legal next status. Neither case mutates
        anything, and neither does a failed snapshot write.
        """
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                raise AlertNotFound(alert_id)
            updated = replace(alert, status=check_transition(alert.status, target))
            self._commit({**self._alerts, alert_id: updated})
            return replace(updated)

    @classmethod
    def load_jsonl(cls, path: str, *, persist_path: Optional[str] = None) -> "AlertStore":
        # seed/persisted rows keep their recorded status and timestamp
        return cls((Alert.from_dict(row) for row in iter_jsonl(path)), persist_path=persist_path)

    def dump_jsonl(self, path: str) -> int:
        with self._lock:
            rows = [a.to_dict() for a in self._alerts.values()]
            _atomic_write_jsonl(path, rows)
        return len(rows)
