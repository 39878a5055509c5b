"""
Comment Service — discussion threads on tasks.

    list    any project access
    create  can_write on the task's project
    delete  the comment's author, or an Owner/Admin of the project

Comments are addressed through their task (or by their own id for delete),
and both lookups pass through the tenant guard before any role check.
"""

import logging

from projecthub.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.task import TaskComment
from projecthub.services import membership_service, task_service
from projecthub.services.activity import record_activity
from projecthub.services.permission import can_administer, can_write
from projecthub.services.tenant_guard import ensure_same_tenant

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 10_000


def _clean_content(content) -> str:
    text = content.strip() if isinstance(content, str) else ""
    if not text:
        raise ValidationError("content is required", details={"content": "required"})
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"content must be at most {MAX_COMMENT_LENGTH} characters",
            details={"content": "too_long"},
        )
    return text


def list_comments(principal, task_id):
    """Oldest first, so the thread reads top to bottom."""
    task = task_service.get_task(principal, task_id)
    return (
        task.comments
        .order_by(TaskComment.created_at.asc(), TaskComment.id.asc())
        .all()
    )


def create_comment(principal, task_id, content) -> TaskComment:
    task = task_service.load_task(principal, task_id)
    membership_service.authorize(principal, task.project_id, can_write, "comment on tasks in this project")
    text = _clean_content(content)

    comment = TaskComment(
        tenant_id=task.tenant_id,
        task_id=task.id,
        user_id=principal.user_id,
        content=text,
    )
    db.session.add(comment)
    db.session.flush()
    record_activity(
        tenant_id=task.tenant_id,
        project_id=task.project_id,
        user_id=principal.user_id,
        action="commented",
        entity_type="task",
        entity_id=task.id,
        entity_name=task.title,
    )
    db.session.commit()
    return comment


def delete_comment(principal, comment_id) -> None:
    comment = db.session.get(TaskComment, comment_id)
    if comment is None:
        raise NotFoundError(resource="Comment", resource_id=comment_id)
    ensure_same_tenant(
        principal.tenant_id, comment.tenant_id,
        resource="Comment", resource_id=comment_id, user_id=principal.user_id,
    )
    task = comment.task
    _, access = membership_service.authorize(principal, task.project_id)

    if comment.user_id != principal.user_id and not can_administer(access.role):
        raise ForbiddenError("Only the author or a project admin can delete this comment")

    record_activity(
        tenant_id=task.tenant_id,
        project_id=task.project_id,
        user_id=principal.user_id,
        action="deleted_comment",
        entity_type="task",
        entity_id=task.id,
        entity_name=task.title,
    )
    db.session.delete(comment)
    db.session.commit()
    logger.info("Comment %s on task %s deleted by user %s", comment_id, task.id, principal.user_id)
