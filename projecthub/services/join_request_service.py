"""
Join-request lifecycle ("join by code").

Any authenticated user may look a project up by its share code, but a
request can only be raised for a project in the requester's own tenant.
Administrators of the project resolve requests:

    pending ──accept──▶ accepted   (membership granted as MEMBER)
       └─────decline─▶ declined
"""

import logging

from sqlalchemy.exc import IntegrityError

from projecthub.core.exceptions import ConflictError, NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.auth import User
from projecthub.models.base import utcnow
from projecthub.models.invitation import (
    REQUEST_ACCEPTED,
    REQUEST_DECLINED,
    REQUEST_PENDING,
    JoinRequest,
)
from projecthub.models.notification import (
    NOTIFY_JOIN_REQUEST,
    NOTIFY_JOIN_REQUEST_ACCEPTED,
    NOTIFY_JOIN_REQUEST_DECLINED,
)
from projecthub.models.project import Project, ProjectRole
from projecthub.services import membership_service
from projecthub.services.activity import record_activity
from projecthub.services.effects import EffectQueue
from projecthub.services.notification import NotificationService
from projecthub.services.permission import can_administer
from projecthub.services.tenant_guard import ensure_same_tenant

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000


def _project_by_code(code) -> Project:
    normalized = (code or "").strip().upper()
    project = Project.query.filter_by(code=normalized).first() if normalized else None
    if project is None:
        raise NotFoundError(resource="Project", resource_id=normalized or None)
    return project


def _pending_request(project_id, user_id):
    return JoinRequest.query.filter_by(
        project_id=project_id, user_id=user_id, status=REQUEST_PENDING,
    ).first()


def _transition(request_id, status, resolver_id, now) -> bool:
    count = (
        JoinRequest.query
        .filter_by(id=request_id, status=REQUEST_PENDING)
        .update(
            {"status": status, "resolved_by": resolver_id, "resolved_at": now},
            synchronize_session=False,
        )
    )
    return count == 1


def _load_for_resolution(principal, request_id, action):
    join_request = db.session.get(JoinRequest, request_id)
    if join_request is None:
        raise NotFoundError(resource="JoinRequest", resource_id=request_id)
    ensure_same_tenant(
        principal.tenant_id, join_request.tenant_id,
        resource="JoinRequest", resource_id=request_id, user_id=principal.user_id,
    )
    project, _ = membership_service.authorize(principal, join_request.project_id, can_administer, action)
    if join_request.status != REQUEST_PENDING:
        raise ConflictError(f"Join request has already been {join_request.status}")
    return join_request, project


# ═══════════════════════════════════════════════════════════════
# Discovery
# ═══════════════════════════════════════════════════════════════
def discover_by_code(principal, code) -> dict:
    """Public summary of a project; open to any authenticated user."""
    project = _project_by_code(code)
    result = project.to_summary()
    result["is_member"] = membership_service.is_member(project, principal.user_id)
    result["has_pending_request"] = _pending_request(project.id, principal.user_id) is not None
    return result


# ═══════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════
def create_join_request(principal, code, message=None, now=None) -> JoinRequest:
    now = now or utcnow()
    project = _project_by_code(code)
    ensure_same_tenant(
        principal.tenant_id, project.tenant_id,
        resource="Project", resource_id=project.id, user_id=principal.user_id,
    )

    if message is not None:
        message = str(message).strip() or None
        if message and len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"message must be at most {MAX_MESSAGE_LENGTH} characters")

    if membership_service.is_member(project, principal.user_id):
        raise ConflictError("You are already a member of this project")
    if _pending_request(project.id, principal.user_id) is not None:
        raise ConflictError("You already have a pending request for this project")

    join_request = JoinRequest(
        tenant_id=project.tenant_id,
        project_id=project.id,
        user_id=principal.user_id,
        message=message,
        status=REQUEST_PENDING,
        created_at=now,
    )
    db.session.add(join_request)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("You already have a pending request for this project") from exc

    owner_id = membership_service.find_owner_id(project)
    requester = db.session.get(User, principal.user_id)
    effects = EffectQueue()
    if owner_id is not None:
        effects.enqueue(
            "notify_owner_join_request",
            NotificationService.write,
            owner_id,
            project.tenant_id,
            NOTIFY_JOIN_REQUEST,
            {
                "title": "New join request",
                "message": f"{requester.display_name if requester else principal.email} "
                           f"wants to join project \"{project.name}\"",
                "project_id": project.id,
                "join_request_id": join_request.id,
            },
        )
    effects.dispatch()

    logger.info("Join request %s: user %s -> project %s",
                join_request.id, principal.user_id, project.id)
    return join_request


# ═══════════════════════════════════════════════════════════════
# Resolve
# ═══════════════════════════════════════════════════════════════
def list_pending_requests(principal, project_id):
    project, _ = membership_service.authorize(
        principal, project_id, can_administer, "view join requests for this project",
    )
    return (
        JoinRequest.query
        .filter_by(project_id=project.id, status=REQUEST_PENDING)
        .order_by(JoinRequest.created_at.desc())
        .all()
    )


def accept_join_request(principal, request_id, now=None):
    """Grant MEMBER access to the requester. Returns the ProjectMember."""
    now = now or utcnow()
    join_request, project = _load_for_resolution(principal, request_id, "accept join requests")
    requester_id = join_request.user_id
    project_id, project_name, tenant_id = project.id, project.name, project.tenant_id

    if membership_service.is_member(project, requester_id):
        _transition(request_id, REQUEST_ACCEPTED, principal.user_id, now)
        db.session.commit()
        raise ConflictError("User is already a member of this project")

    try:
        member = membership_service.add_member(project, requester_id, ProjectRole.MEMBER)
    except ConflictError:
        _transition(request_id, REQUEST_ACCEPTED, principal.user_id, now)
        db.session.commit()
        raise

    if not _transition(request_id, REQUEST_ACCEPTED, principal.user_id, now):
        db.session.rollback()
        raise ConflictError("Join request has already been resolved")

    record_activity(
        tenant_id=tenant_id,
        project_id=project_id,
        user_id=requester_id,
        action="joined",
        entity_type="project",
        entity_id=project_id,
        entity_name=project_name,
    )
    db.session.commit()

    effects = EffectQueue()
    effects.enqueue(
        "notify_requester_accepted",
        NotificationService.write,
        requester_id,
        tenant_id,
        NOTIFY_JOIN_REQUEST_ACCEPTED,
        {
            "title": "Join request accepted",
            "message": f"Your request to join \"{project_name}\" has been accepted",
            "project_id": project_id,
            "join_request_id": request_id,
        },
    )
    effects.dispatch()

    logger.info("Join request %s accepted by user %s", request_id, principal.user_id)
    return member


def decline_join_request(principal, request_id, now=None) -> JoinRequest:
    now = now or utcnow()
    join_request, project = _load_for_resolution(principal, request_id, "decline join requests")
    requester_id = join_request.user_id
    project_id, project_name, tenant_id = project.id, project.name, project.tenant_id

    if not _transition(request_id, REQUEST_DECLINED, principal.user_id, now):
        db.session.rollback()
        raise ConflictError("Join request has already been resolved")
    db.session.commit()

    effects = EffectQueue()
    effects.enqueue(
        "notify_requester_declined",
        NotificationService.write,
        requester_id,
        tenant_id,
        NOTIFY_JOIN_REQUEST_DECLINED,
        {
            "title": "Join request declined",
            "message": f"Your request to join \"{project_name}\" was declined",
            "project_id": project_id,
            "join_request_id": request_id,
        },
    )
    effects.dispatch()

    logger.info("Join request %s declined by user %s", request_id, principal.user_id)
    return join_request
