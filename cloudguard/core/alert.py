from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class Severity(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Category(str, Enum):
    CVE = "CVE"
    S3 = "S3"
    IAM = "IAM"
    NETWORK = "Network"
    ACTIVITY = "Activity"


class Status(str, Enum):
    """Lifecycle order is declaration order."""

    NEW = "New"
    ACKNOWLEDGED = "Acknowledged"
    IN_PROGRESS = "In-Progress"
    RESOLVED = "Resolved"


class MalformedAlert(ValueError):
    pass


def fold(value: str) -> str:
    # "In-Progress", "in-progress" and "inprogress" all fold to "inprogress"
    return str(value).replace("-", "").lower()


def _parse_enum(enum_cls, value: Any, *, field_name: str):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise MalformedAlert(f"{field_name} must be a string, got {type(value).__name__}")
    wanted = fold(value)
    for member in enum_cls:
        if fold(member.value) == wanted:
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise MalformedAlert(f"unknown {field_name} {value!r} (expected one of: {allowed})")


def parse_severity(value: Any) -> Severity:
    return _parse_enum(Severity, value, field_name="severity")


def parse_category(value: Any) -> Category:
    return _parse_enum(Category, value, field_name="category")


def parse_status(value: Any) -> Status:
    return _parse_enum(Status, value, field_name="status")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def make_alert_id() -> str:
    return f"ALT-{uuid.uuid4().hex[:8].upper()}"


@dataclass
class Alert:
    id: str
    severity: Severity
    category: Category
    description: str
    status: Status = Status.NEW

    # set once at creation
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "category": self.category.value,
            "status": self.status.value,
            "description": self.description,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Alert":
        """
        Build an Alert from a JSON-ish row (seed file, API payload).

        Enum fields are matched case-insensitively; status also ignores hyphens.
        A row without a timestamp is stamped with the current UTC time.
        """
        if not isinstance(row, dict):
            raise MalformedAlert(f"alert row must be an object, got {type(row).__name__}")
        alert_id: Optional[str] = row.get("id")
        if not alert_id or not isinstance(alert_id, str):
            raise MalformedAlert("alert id must be a non-empty string")
        description = row.get("description", "")
        if not isinstance(description, str):
            raise MalformedAlert("description must be a string")

        return cls(
            id=alert_id,
            severity=parse_severity(row.get("severity")),
            category=parse_category(row.get("category")),
            status=parse_status(row.get("status", Status.NEW.value)),
            description=description,
            timestamp=str(row.get("timestamp") or utc_now_iso()),
        )
