"""
Project permission predicates.

Pure, total functions over ``ProjectRole | None``. ``None`` (no access)
is always denied, and so is any value that is not a role.

Usage:
    from projecthub.services.permission import can_write

    if not can_write(access.role):
        raise ForbiddenError("Insufficient permissions")
"""

from projecthub.models.project import ProjectRole

# capability -> roles granted it; every role must appear as a key below
_CAPABILITIES: dict[ProjectRole, frozenset[str]] = {
    ProjectRole.OWNER: frozenset({"write", "administer", "delete_project"}),
    ProjectRole.ADMIN: frozenset({"write", "administer"}),
    ProjectRole.MEMBER: frozenset({"write"}),
    ProjectRole.VIEWER: frozenset(),
}

_missing = set(ProjectRole) - set(_CAPABILITIES)
if _missing:
    raise RuntimeError(f"Capability table is missing roles: {sorted(r.value for r in _missing)}")


def _has(role: ProjectRole | None, capability: str) -> bool:
    parsed = ProjectRole.parse(role) if role is not None else None
    if parsed is None:
        return False
    return capability in _CAPABILITIES[parsed]


def can_write(role: ProjectRole | None) -> bool:
    """Create/update/delete tasks and edit the project."""
    return _has(role, "write")


def can_administer(role: ProjectRole | None) -> bool:
    """Invite, resolve join requests, manage members."""
    return _has(role, "administer")


def can_delete_project(role: ProjectRole | None) -> bool:
    return _has(role, "delete_project")
