from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable

from cloudguard.core.alert import Alert, Category, Status

# wire keys used by the dashboard stat cards
STATUS_KEYS = {
    Status.NEW: "new",
    Status.ACKNOWLEDGED: "acknowledged",
    Status.IN_PROGRESS: "inProgress",
    Status.RESOLVED: "resolved",
}


def status_counts(alerts: Iterable[Alert]) -> Dict[str, int]:
    counts = Counter(a.status for a in alerts)
    out = {key: counts.get(status, 0) for status, key in STATUS_KEYS.items()}
    out["total"] = sum(counts.values())
    return out


def category_counts(alerts: Iterable[Alert]) -> Dict[str, int]:
    counts = Counter(a.category for a in alerts)
    return {c.value: counts.get(c, 0) for c in Category}


def summarize(alerts: Iterable[Alert]) -> Dict[str, Dict[str, int]]:
    """Status and category counts over the full, unfiltered collection."""
    rows = list(alerts)
    return {"statuses": status_counts(rows), "categories": category_counts(rows)}
