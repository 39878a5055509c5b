"""
Security observability — in-process record of blocked cross-tenant access.

Every tenant guard rejection lands here as a ``SecurityEvent``. The buffer is
bounded and per-process; it feeds log escalation (``repeat_offenders``) and
test assertions, not long-term audit storage.
"""

from __future__ import annotations

import time
from collections import Counter, deque
from dataclasses import asdict, dataclass, field

from flask import g, has_request_context, request

MAX_EVENTS = 5000

_EVENTS: deque[SecurityEvent] = deque(maxlen=MAX_EVENTS)


@dataclass(frozen=True)
class SecurityEvent:
    event_type: str
    resource: str
    caller_tenant_id: int | None
    resource_tenant_id: int | None
    severity: str = "high"
    user_id: int | None = None
    resource_id: int | str | None = None
    method: str | None = None
    path: str | None = None
    ts: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return asdict(self)


def _request_user_id() -> int | None:
    principal = g.get("principal")
    return principal.user_id if principal is not None else None


def record_security_event(
    *,
    event_type: str,
    resource: str,
    caller_tenant_id: int | None,
    resource_tenant_id: int | None,
    severity: str = "high",
    user_id: int | None = None,
    resource_id: int | str | None = None,
    now: float | None = None,
) -> SecurityEvent:
    method = path = None
    if has_request_context():
        method, path = request.method, request.path
        if user_id is None:
            user_id = _request_user_id()

    event = SecurityEvent(
        event_type=event_type,
        resource=resource,
        caller_tenant_id=caller_tenant_id,
        resource_tenant_id=resource_tenant_id,
        severity=severity,
        user_id=user_id,
        resource_id=resource_id,
        method=method,
        path=path,
        ts=now if now is not None else time.time(),
    )
    _EVENTS.append(event)
    return event


def get_recent_security_events(
    *,
    seconds: int = 3600,
    event_type: str | None = None,
    now: float | None = None,
) -> list[SecurityEvent]:
    cutoff = (now if now is not None else time.time()) - seconds
    return [
        e for e in _EVENTS
        if e.ts >= cutoff and (event_type is None or e.event_type == event_type)
    ]


def repeat_offenders(
    *,
    threshold: int = 5,
    window_seconds: int = 300,
    now: float | None = None,
) -> dict[int, int]:
    """Users with at least ``threshold`` blocked attempts inside the window.

    Returns ``{user_id: count}``. Events without a user (no authenticated
    principal) are not attributed.
    """
    counts = Counter(
        e.user_id
        for e in get_recent_security_events(seconds=window_seconds, now=now)
        if e.user_id is not None
    )
    return {user_id: n for user_id, n in counts.items() if n >= threshold}


def reset_security_events() -> None:
    _EVENTS.clear()
