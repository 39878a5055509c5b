"""
Project Service — project CRUD and membership removal.

Every function takes the authenticated Principal first. Authorization goes
through ``membership_service.authorize`` so the tenant guard always runs
before role evaluation.
"""

import logging
import re

from sqlalchemy import or_

from projecthub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.auth import User
from projecthub.models.notification import NOTIFY_MEMBER_REMOVED
from projecthub.models.project import (
    DEFAULT_PROJECT_COLOR,
    PROJECT_STATUSES,
    Project,
    ProjectMember,
    ProjectRole,
)
from projecthub.services import membership_service
from projecthub.services.activity import record_activity
from projecthub.services.effects import EffectQueue
from projecthub.services.notification import NotificationService
from projecthub.services.permission import can_administer, can_delete_project, can_write
from projecthub.utils.crypto import generate_share_code

logger = logging.getLogger(__name__)

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_MAX_CODE_ATTEMPTS = 20


def _generate_unique_code() -> str:
    for _ in range(_MAX_CODE_ATTEMPTS):
        code = generate_share_code()
        if Project.query.filter_by(code=code).first() is None:
            return code
    raise RuntimeError("Could not generate a unique project code")


def _validate_fields(data: dict, *, partial: bool) -> dict:
    """Return the subset of ``data`` that may be written, validated."""
    clean = {}
    errors = {}

    if "name" in data or not partial:
        name = (data.get("name") or "").strip()
        if not name:
            errors["name"] = "required"
        elif len(name) > 200:
            errors["name"] = "max 200 characters"
        else:
            clean["name"] = name

    if "description" in data:
        desc = data.get("description")
        clean["description"] = desc.strip() if isinstance(desc, str) else None

    if data.get("color") is not None:
        if not _COLOR_RE.match(str(data["color"])):
            errors["color"] = "must be a hex color like #14b8a6"
        else:
            clean["color"] = data["color"]

    if data.get("status") is not None:
        status = str(data["status"]).lower()
        if status not in PROJECT_STATUSES:
            errors["status"] = f"must be one of {sorted(PROJECT_STATUSES)}"
        else:
            clean["status"] = status

    if errors:
        raise ValidationError("Invalid project data", details=errors)
    return clean


def _with_role(project: Project, role: ProjectRole | None) -> dict:
    d = project.to_dict()
    d["role"] = role.value if role else None
    return d


# ═══════════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════════
def create_project(principal, data: dict) -> Project:
    fields = _validate_fields(data, partial=False)
    project = Project(
        tenant_id=principal.tenant_id,
        created_by=principal.user_id,
        code=_generate_unique_code(),
        color=fields.pop("color", DEFAULT_PROJECT_COLOR),
        status=fields.pop("status", "active"),
        **fields,
    )
    db.session.add(project)
    db.session.flush()

    membership_service.add_member(project, principal.user_id, ProjectRole.OWNER)
    record_activity(
        tenant_id=principal.tenant_id,
        project_id=project.id,
        user_id=principal.user_id,
        action="created",
        entity_type="project",
        entity_id=project.id,
        entity_name=project.name,
    )
    db.session.commit()
    logger.info("Project %s (%s) created by user %s", project.id, project.code, principal.user_id)
    return project


def get_project(principal, project_id) -> dict:
    project, access = membership_service.authorize(principal, project_id)
    return _with_role(project, access.role)


def list_projects(principal) -> list[dict]:
    """Projects in the caller's tenant where they hold a row or are the creator."""
    rows = ProjectMember.query.filter_by(
        user_id=principal.user_id, tenant_id=principal.tenant_id,
    ).all()
    roles = {m.project_id: m.role for m in rows}

    projects = (
        Project.query_for_tenant(principal.tenant_id)
        .filter(or_(Project.id.in_(list(roles)), Project.created_by == principal.user_id))
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .all()
    )
    return [_with_role(p, roles.get(p.id, ProjectRole.OWNER)) for p in projects]


def update_project(principal, project_id, data: dict) -> Project:
    project, _ = membership_service.authorize(principal, project_id, can_write, "edit this project")
    fields = _validate_fields(data, partial=True)
    for key, value in fields.items():
        setattr(project, key, value)
    record_activity(
        tenant_id=project.tenant_id,
        project_id=project.id,
        user_id=principal.user_id,
        action="updated",
        entity_type="project",
        entity_id=project.id,
        entity_name=project.name,
    )
    db.session.commit()
    return project


def delete_project(principal, project_id) -> None:
    project, _ = membership_service.authorize(
        principal, project_id, can_delete_project, "delete this project",
    )
    db.session.delete(project)
    db.session.commit()
    logger.info("Project %s deleted by user %s", project_id, principal.user_id)


# ═══════════════════════════════════════════════════════════════
# Members
# ═══════════════════════════════════════════════════════════════
def remove_member(principal, project_id, user_id) -> None:
    """
    Remove ``user_id`` from the project.

    Administrators may remove others; only owners may remove an owner; any
    member may remove themselves. The last explicit owner row cannot go.
    """
    project, access = membership_service.authorize(principal, project_id)
    target = membership_service.get_membership(project.id, user_id)
    if target is None:
        raise NotFoundError(resource="ProjectMember", resource_id=user_id)

    leaving = user_id == principal.user_id
    if not leaving:
        if not can_administer(access.role):
            raise ForbiddenError("You do not have permission to remove members")
        if target.role == ProjectRole.OWNER and access.role != ProjectRole.OWNER:
            raise ForbiddenError("Only owners can remove an owner")

    if target.role == ProjectRole.OWNER:
        other_owners = (
            ProjectMember.query
            .filter_by(project_id=project.id, role=ProjectRole.OWNER)
            .filter(ProjectMember.user_id != user_id)
            .count()
        )
        if other_owners == 0:
            raise ConflictError("A project must keep at least one owner")

    removed = db.session.get(User, user_id)
    project_name = project.name
    db.session.delete(target)
    record_activity(
        tenant_id=project.tenant_id,
        project_id=project.id,
        user_id=principal.user_id,
        action="left" if leaving else "removed",
        entity_type="member",
        entity_id=user_id,
        entity_name=removed.display_name if removed else None,
    )
    db.session.commit()

    effects = EffectQueue()
    if not leaving:
        effects.enqueue(
            "notify_member_removed",
            NotificationService.write,
            user_id,
            principal.tenant_id,
            NOTIFY_MEMBER_REMOVED,
            {
                "title": "Removed from project",
                "message": f"You were removed from \"{project_name}\"",
                "project_id": project_id,
            },
        )
    effects.dispatch()
