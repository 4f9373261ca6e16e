from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Iterator, Mapping

from cloudguard.core.alert import Alert, fold

ALL = "all"


@dataclass(frozen=True)
class FilterCriteria:
    """
    Dashboard filter state. severity/status/category are "all" or an enum value,
    matched case-insensitively (status also ignores hyphens). `search` is a
    case-insensitive substring of the description or id; empty matches everything.
    """
    severity: str = ALL
    status: str = ALL
    category: str = ALL
    search: str = ""

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "FilterCriteria":
        def pick(name: str, default: str) -> str:
            v = params.get(name)
            return default if v is None or v == "" else str(v)

        return cls(
            severity=pick("severity", ALL),
            status=pick("status", ALL),
            category=pick("category", ALL),
            search=pick("search", ""),
        )

    def with_value(self, name: str, value: str) -> "FilterCriteria":
        if name not in ("severity", "status", "category", "search"):
            raise KeyError(name)
        return replace(self, **{name: value})


def _is_all(v: str) -> bool:
    return v.lower() == ALL


def matches(alert: Alert, criteria: FilterCriteria) -> bool:
    if not _is_all(criteria.severity) and alert.severity.value.lower() != criteria.severity.lower():
        return False
    if not _is_all(criteria.status) and fold(alert.status.value) != fold(criteria.status):
        return False
    if not _is_all(criteria.category) and alert.category.value.lower() != criteria.category.lower():
        return False
    if criteria.search:
        q = criteria.search.lower()
        if q not in alert.description.lower() and q not in alert.id.lower():
            return False
    return True


def filter_alerts(alerts: Iterable[Alert], criteria: FilterCriteria) -> Iterator[Alert]:
    # lazy and order-preserving; call again after any criteria change
    return (a for a in alerts if matches(a, criteria))
