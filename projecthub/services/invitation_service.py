"""
Invitation lifecycle.

    pending ──accept──▶ accepted
       │  └──decline─▶ declined
       └──(7 days)───▶ expired

Terminal states never transition again. Every transition is a conditional
``UPDATE ... WHERE status = 'pending'`` so two concurrent responses cannot
both win. Expiry is applied lazily when a pending row is read past its
``expires_at``; ``expire_stale_invitations`` is only a housekeeping sweep.

Mail and notifications run after commit through an EffectQueue.
"""

import logging

from sqlalchemy.exc import IntegrityError

from projecthub.core.exceptions import (
    ConflictError,
    ForbiddenError,
    GoneError,
    NotFoundError,
    ValidationError,
)
from projecthub.models import db
from projecthub.models.auth import User
from projecthub.models.base import utcnow
from projecthub.models.invitation import (
    INVITABLE_ROLES,
    INVITATION_ACCEPTED,
    INVITATION_DECLINED,
    INVITATION_EXPIRED,
    INVITATION_PENDING,
    INVITATION_TTL,
    Invitation,
)
from projecthub.models.notification import NOTIFY_INVITATION_ACCEPTED
from projecthub.models.project import ProjectRole
from projecthub.services import membership_service
from projecthub.services.activity import record_activity
from projecthub.services.effects import EffectQueue
from projecthub.services.email_service import EmailService
from projecthub.services.notification import NotificationService
from projecthub.services.permission import can_administer
from projecthub.services.tenant_guard import ensure_same_tenant
from projecthub.services.user_service import get_user_by_email, normalize_email
from projecthub.utils.crypto import generate_invitation_token

logger = logging.getLogger(__name__)


# ── helpers ──────────────────────────────────────────────────────────────

def _transition(invitation_id, status, now) -> bool:
    """Move a pending invitation to ``status``. False if it was no longer pending."""
    values = {"status": status}
    if status in (INVITATION_ACCEPTED, INVITATION_DECLINED):
        values["responded_at"] = now
    count = (
        Invitation.query
        .filter_by(id=invitation_id, status=INVITATION_PENDING)
        .update(values, synchronize_session=False)
    )
    return count == 1


def _expire_and_raise(invitation):
    _transition(invitation.id, INVITATION_EXPIRED, None)
    db.session.commit()
    logger.info("Invitation %s expired on read", invitation.id)
    raise GoneError("Invitation has expired")


def _get_by_token(token) -> Invitation:
    invitation = Invitation.query.filter_by(token=token).first() if token else None
    if invitation is None:
        raise NotFoundError(resource="Invitation")
    return invitation


def _ensure_respondable(invitation, now):
    """Gone for expired rows, Conflict for already-answered ones."""
    if invitation.status == INVITATION_EXPIRED:
        raise GoneError("Invitation has expired")
    if invitation.status != INVITATION_PENDING:
        raise ConflictError(f"Invitation has already been {invitation.status}")
    if invitation.is_past_expiry(now):
        _expire_and_raise(invitation)


def _ensure_addressee(principal, invitation):
    if (principal.email or "").lower() != invitation.email:
        raise ForbiddenError(
            f"This invitation was sent to {invitation.email}. "
            "Sign in with that email address to accept it."
        )


def _parse_invitable_role(role) -> ProjectRole:
    parsed = ProjectRole.parse(role if role is not None else ProjectRole.MEMBER)
    if parsed not in INVITABLE_ROLES:
        allowed = sorted(r.value for r in INVITABLE_ROLES)
        raise ValidationError(f"Invalid role. Must be one of: {allowed}", details={"role": role})
    return parsed


# ═══════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════
def create_invitation(principal, project_id, email, role=ProjectRole.MEMBER, now=None) -> Invitation:
    now = now or utcnow()
    project, _ = membership_service.authorize(
        principal, project_id, can_administer, "invite members to this project",
    )

    email = normalize_email(email)
    role = _parse_invitable_role(role)

    invitee = get_user_by_email(project.tenant_id, email)
    if invitee is not None and membership_service.get_membership(project.id, invitee.id) is not None:
        raise ConflictError("User is already a member of this project")

    pending = Invitation.query.filter_by(
        project_id=project.id, email=email, status=INVITATION_PENDING,
    ).first()
    if pending is not None:
        if not pending.is_past_expiry(now):
            raise ConflictError("An invitation is already pending for this email")
        _transition(pending.id, INVITATION_EXPIRED, None)

    invitation = Invitation(
        tenant_id=project.tenant_id,
        project_id=project.id,
        email=email,
        role=role,
        status=INVITATION_PENDING,
        invited_by=principal.user_id,
        token=generate_invitation_token(),
        created_at=now,
        expires_at=now + INVITATION_TTL,
    )
    db.session.add(invitation)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("An invitation is already pending for this email") from exc

    inviter = db.session.get(User, principal.user_id)
    effects = EffectQueue()
    effects.enqueue(
        "invitation_email",
        EmailService.send_invitation,
        to_email=email,
        inviter_name=inviter.display_name if inviter else "Someone",
        project_name=project.name,
        role=role.value,
        token=invitation.token,
    )
    effects.dispatch()

    logger.info("Invitation %s created for project %s by user %s",
                invitation.id, project.id, principal.user_id)
    return invitation


# ═══════════════════════════════════════════════════════════════
# Public lookup
# ═══════════════════════════════════════════════════════════════
def get_invitation_by_token(token, now=None) -> Invitation:
    """Unauthenticated lookup backing the invite landing page."""
    now = now or utcnow()
    invitation = _get_by_token(token)
    if invitation.status in (INVITATION_ACCEPTED, INVITATION_DECLINED):
        raise NotFoundError(resource="Invitation")
    if invitation.status == INVITATION_EXPIRED:
        raise GoneError("Invitation has expired")
    if invitation.is_past_expiry(now):
        _expire_and_raise(invitation)
    return invitation


# ═══════════════════════════════════════════════════════════════
# Respond
# ═══════════════════════════════════════════════════════════════
def accept_invitation(principal, token, now=None):
    """Turn a pending invitation into a membership. Returns the ProjectMember."""
    now = now or utcnow()
    invitation = _get_by_token(token)
    ensure_same_tenant(
        principal.tenant_id, invitation.tenant_id,
        resource="Invitation", resource_id=invitation.id, user_id=principal.user_id,
    )
    _ensure_respondable(invitation, now)
    _ensure_addressee(principal, invitation)

    project = invitation.project
    invitation_id = invitation.id
    inviter_id = invitation.invited_by
    project_id, project_name = project.id, project.name

    if membership_service.is_member(project, principal.user_id):
        _transition(invitation_id, INVITATION_ACCEPTED, now)
        db.session.commit()
        raise ConflictError("You are already a member of this project")

    try:
        member = membership_service.add_member(project, principal.user_id, invitation.role)
    except ConflictError:
        _transition(invitation_id, INVITATION_ACCEPTED, now)
        db.session.commit()
        raise

    if not _transition(invitation_id, INVITATION_ACCEPTED, now):
        db.session.rollback()
        raise ConflictError("Invitation has already been responded to")

    record_activity(
        tenant_id=invitation.tenant_id,
        project_id=project_id,
        user_id=principal.user_id,
        action="joined",
        entity_type="project",
        entity_id=project_id,
        entity_name=project_name,
    )
    db.session.commit()

    effects = EffectQueue()
    if inviter_id is not None:
        effects.enqueue(
            "notify_inviter",
            NotificationService.write,
            inviter_id,
            principal.tenant_id,
            NOTIFY_INVITATION_ACCEPTED,
            {
                "title": "Invitation accepted",
                "message": f"{principal.email} joined \"{project_name}\"",
                "project_id": project_id,
            },
        )
    effects.dispatch()

    logger.info("User %s accepted invitation %s to project %s",
                principal.user_id, invitation_id, project_id)
    return member


def decline_invitation(principal, token, now=None) -> Invitation:
    now = now or utcnow()
    invitation = _get_by_token(token)
    ensure_same_tenant(
        principal.tenant_id, invitation.tenant_id,
        resource="Invitation", resource_id=invitation.id, user_id=principal.user_id,
    )
    _ensure_respondable(invitation, now)
    _ensure_addressee(principal, invitation)

    if not _transition(invitation.id, INVITATION_DECLINED, now):
        db.session.rollback()
        raise ConflictError("Invitation has already been responded to")
    db.session.commit()
    return invitation


# ═══════════════════════════════════════════════════════════════
# Listing / housekeeping
# ═══════════════════════════════════════════════════════════════
def list_project_invitations(principal, project_id, now=None):
    now = now or utcnow()
    project, _ = membership_service.authorize(
        principal, project_id, can_administer, "view invitations for this project",
    )
    return (
        Invitation.query
        .filter_by(project_id=project.id, status=INVITATION_PENDING)
        .filter(Invitation.expires_at > now)
        .order_by(Invitation.created_at.desc())
        .all()
    )


def list_my_invitations(principal, now=None):
    """Pending, unexpired invitations addressed to the caller."""
    now = now or utcnow()
    return (
        Invitation.query
        .filter_by(
            tenant_id=principal.tenant_id,
            email=(principal.email or "").lower(),
            status=INVITATION_PENDING,
        )
        .filter(Invitation.expires_at > now)
        .order_by(Invitation.created_at.desc())
        .all()
    )


def expire_stale_invitations(now=None) -> int:
    """Mark every pending invitation past its expiry as expired."""
    now = now or utcnow()
    count = (
        Invitation.query
        .filter(Invitation.status == INVITATION_PENDING, Invitation.expires_at <= now)
        .update({"status": INVITATION_EXPIRED}, synchronize_session=False)
    )
    db.session.commit()
    if count:
        logger.info("Expired %d stale invitations", count)
    return count
