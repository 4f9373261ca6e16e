from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from cloudguard.alerts.errors import InvalidTransition
from cloudguard.core.alert import Status


# New -> Acknowledged -> In-Progress -> Resolved (terminal)
TRANSITIONS: Mapping[Status, Optional[Status]] = MappingProxyType({
    Status.NEW: Status.ACKNOWLEDGED,
    Status.ACKNOWLEDGED: Status.IN_PROGRESS,
    Status.IN_PROGRESS: Status.RESOLVED,
    Status.RESOLVED: None,
})


def next_status(current: Status) -> Optional[Status]:
    return TRANSITIONS[current]


def is_terminal(status: Status) -> bool:
    return TRANSITIONS[status] is None


def check_transition(current: Status, target: Optional[Status] = None) -> Status:
    """
    Return the status `current` may move to.

    With no target this is plain "advance to next". A supplied target must equal the
    computed next value; it is validated, never blindly applied.
    Raises InvalidTransition for terminal alerts or a mismatched target.
    """
    allowed = TRANSITIONS[current]
    requested = target.value if target is not None else None
    if allowed is None:
        raise InvalidTransition(current.value, requested, None)
    if target is not None and target is not allowed:
        raise InvalidTransition(current.value, requested, allowed.value)
    return allowed
