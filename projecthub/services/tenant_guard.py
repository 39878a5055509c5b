"""
Tenant guard — the single cross-tenant check.

Call ``ensure_same_tenant`` right after loading a resource by id and before
any membership evaluation. A mismatch is a hard error, never a soft "no
access" result. Callers that keep tripping the guard are logged at ERROR.
"""

import logging

from projecthub.core.exceptions import TenantMismatchError
from projecthub.services.security_observability import record_security_event, repeat_offenders

logger = logging.getLogger(__name__)

EVENT_TYPE = "tenant_mismatch"


def ensure_same_tenant(
    caller_tenant_id: int,
    resource_tenant_id: int,
    *,
    resource: str = "Resource",
    resource_id: int | str | None = None,
    user_id: int | None = None,
) -> None:
    if caller_tenant_id == resource_tenant_id:
        return

    event = record_security_event(
        event_type=EVENT_TYPE,
        resource=resource,
        caller_tenant_id=caller_tenant_id,
        resource_tenant_id=resource_tenant_id,
        user_id=user_id,
        resource_id=resource_id,
    )
    repeated = event.user_id is not None and event.user_id in repeat_offenders()
    logger.log(
        logging.ERROR if repeated else logging.WARNING,
        "Cross-tenant access blocked: user %s of tenant %s -> %s %s of tenant %s%s",
        event.user_id, caller_tenant_id, resource, resource_id, resource_tenant_id,
        " (repeated)" if repeated else "",
        extra={
            "event_type": EVENT_TYPE,
            "severity": "critical" if repeated else event.severity,
            "tenant_id": caller_tenant_id,
            "user_id": event.user_id,
            "resource": resource,
            "resource_id": resource_id,
        },
    )
    raise TenantMismatchError(caller_tenant_id, resource_tenant_id, resource=resource)
