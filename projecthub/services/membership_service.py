"""
Membership & role resolution.

``resolve_access`` answers "may this user see this project, and as what?"
from the store on every call. No caching.

Resolution order:
    1. explicit ProjectMember row      → its role
    2. project missing                 → no access
    3. project in another tenant       → TenantMismatchError
    4. user created the project        → OWNER (``is_fallback_owner``)
    5. otherwise                       → no access

The creator fallback is confined to ``is_fallback_owner``. It still applies
after the creator's explicit membership row has been removed.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from projecthub.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from projecthub.models import db
from projecthub.models.project import Project, ProjectMember, ProjectRole
from projecthub.services.tenant_guard import ensure_same_tenant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectAccess:
    has_access: bool
    role: ProjectRole | None = None


NO_ACCESS = ProjectAccess(has_access=False, role=None)


# ═══════════════════════════════════════════════════════════════
# Resolution
# ═══════════════════════════════════════════════════════════════
def is_fallback_owner(project: Project, user_id: int) -> bool:
    return project.created_by is not None and project.created_by == user_id


def get_membership(project_id: int, user_id: int) -> ProjectMember | None:
    return ProjectMember.query.filter_by(project_id=project_id, user_id=user_id).first()


def resolve_access(user_id: int, project_id: int, tenant_id: int) -> ProjectAccess:
    member = ProjectMember.query.filter_by(
        project_id=project_id, user_id=user_id, tenant_id=tenant_id,
    ).first()
    if member is not None:
        return ProjectAccess(has_access=True, role=member.role)

    project = db.session.get(Project, project_id)
    if project is None:
        return NO_ACCESS

    ensure_same_tenant(
        tenant_id, project.tenant_id, resource="Project", resource_id=project.id, user_id=user_id,
    )

    if is_fallback_owner(project, user_id):
        return ProjectAccess(has_access=True, role=ProjectRole.OWNER)
    return NO_ACCESS


def is_member(project: Project, user_id: int) -> bool:
    """Explicit row or creator fallback."""
    return get_membership(project.id, user_id) is not None or is_fallback_owner(project, user_id)


def load_project(principal, project_id: int) -> Project:
    """Load a project by id and pass it through the tenant guard."""
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError(resource="Project", resource_id=project_id)
    ensure_same_tenant(
        principal.tenant_id, project.tenant_id,
        resource="Project", resource_id=project.id, user_id=principal.user_id,
    )
    return project


def authorize(principal, project_id: int, predicate=None, action: str = "access this project"):
    """
    Load + guard + resolve, then apply ``predicate`` to the resolved role.

    With no predicate, any access is enough. Returns ``(project, access)``.
    """
    project = load_project(principal, project_id)
    access = resolve_access(principal.user_id, project.id, principal.tenant_id)
    allowed = access.has_access if predicate is None else predicate(access.role)
    if not allowed:
        logger.info(
            "User %s denied on project %s: cannot %s (role=%s)",
            principal.user_id, project.id, action, access.role.value if access.role else None,
        )
        raise ForbiddenError(f"You do not have permission to {action}")
    return project, access


def find_owner_id(project: Project) -> int | None:
    """First explicit OWNER row, falling back to the creator."""
    owner = (
        ProjectMember.query
        .filter_by(project_id=project.id, role=ProjectRole.OWNER)
        .order_by(ProjectMember.joined_at.asc(), ProjectMember.id.asc())
        .first()
    )
    if owner is not None:
        return owner.user_id
    return project.created_by


# ═══════════════════════════════════════════════════════════════
# Mutation
# ═══════════════════════════════════════════════════════════════
def add_member(project: Project, user_id: int, role: ProjectRole) -> ProjectMember:
    """
    Insert a membership row inside the caller's transaction.

    A ``uq_project_member`` violation rolls the whole session back and is
    reported as ConflictError, the same outcome as a pre-checked duplicate.
    """
    member = ProjectMember(
        tenant_id=project.tenant_id,
        project_id=project.id,
        user_id=user_id,
        role=role,
    )
    db.session.add(member)
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        logger.info("Membership insert raced for project %s user %s: %s", project.id, user_id, exc.orig)
        raise ConflictError("User is already a member of this project") from exc
    return member


# ═══════════════════════════════════════════════════════════════
# Queries
# ═══════════════════════════════════════════════════════════════
def list_members(principal, project_id: int):
    project, _ = authorize(principal, project_id)
    rows = (
        ProjectMember.query
        .filter_by(project_id=project.id)
        .order_by(ProjectMember.joined_at.asc(), ProjectMember.id.asc())
        .all()
    )
    return [m.to_dict() for m in rows]
