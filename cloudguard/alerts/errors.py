from __future__ import annotations

from typing import Any, Dict, Optional


class AlertError(Exception):
    """
    Base for expected, caller-handled outcomes of store operations.

    `code` is the stable machine-readable name the HTTP layer puts in the error envelope.
    """
    code = "ALERT_ERROR"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AlertNotFound(AlertError):
    code = "NOT_FOUND"

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert {alert_id!r} not found.", details={"alert_id": alert_id})
        self.alert_id = alert_id


class InvalidTransition(AlertError):
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, requested: Optional[str], allowed: Optional[str]) -> None:
        if allowed is None:
            msg = f"Alert is already {current}; no further transition is allowed."
        else:
            msg = f"Cannot move alert from {current} to {requested}; next status must be {allowed}."
        super().__init__(msg, details={"current": current, "requested": requested, "allowed": allowed})


class DuplicateAlert(AlertError):
    code = "DUPLICATE_ALERT"

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert {alert_id!r} already exists.", details={"alert_id": alert_id})


class MalformedRequest(AlertError):
    code = "MALFORMED_REQUEST"
