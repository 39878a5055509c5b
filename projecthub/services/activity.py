"""
Activity recorder — append-only project feed.

``record_activity`` only flushes: it joins the caller's transaction and is
committed (or rolled back) together with the state change it describes.
"""

from projecthub.models import db
from projecthub.models.activity import ActivityLog
from projecthub.services import membership_service


def record_activity(*, tenant_id, project_id, user_id, action, entity_type,
                    entity_id=None, entity_name=None):
    entry = ActivityLog(
        tenant_id=tenant_id,
        project_id=project_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_name=entity_name,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def list_project_activity(principal, project_id, limit=50):
    """Newest-first activity feed; any project access suffices."""
    project, _ = membership_service.authorize(principal, project_id)
    limit = max(1, min(int(limit), 200))
    rows = (
        ActivityLog.query
        .filter_by(project_id=project.id, tenant_id=principal.tenant_id)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
    return [r.to_dict() for r in rows]
