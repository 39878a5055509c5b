"""Task Service — task CRUD inside a project."""

import logging
from datetime import date

from projecthub.core.exceptions import NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.project import Project
from projecthub.models.task import TASK_PRIORITIES, TASK_STATUSES, Task
from projecthub.services import membership_service
from projecthub.services.activity import record_activity
from projecthub.services.permission import can_write
from projecthub.services.tenant_guard import ensure_same_tenant

logger = logging.getLogger(__name__)


def load_task(principal, task_id) -> Task:
    """Load a task by id and pass it through the tenant guard."""
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFoundError(resource="Task", resource_id=task_id)
    ensure_same_tenant(
        principal.tenant_id, task.tenant_id, resource="Task", resource_id=task_id, user_id=principal.user_id,
    )
    return task


def _validate(project: Project, data: dict, *, partial: bool) -> dict:
    clean = {}
    errors = {}

    if "title" in data or not partial:
        title = (data.get("title") or "").strip()
        if not title:
            errors["title"] = "required"
        elif len(title) > 300:
            errors["title"] = "max 300 characters"
        else:
            clean["title"] = title

    if "description" in data:
        clean["description"] = data.get("description")

    for key, allowed in (("status", TASK_STATUSES), ("priority", TASK_PRIORITIES)):
        if data.get(key) is not None:
            value = str(data[key]).lower()
            if value not in allowed:
                errors[key] = f"must be one of {sorted(allowed)}"
            else:
                clean[key] = value

    if "due_date" in data:
        raw = data.get("due_date")
        if raw in (None, ""):
            clean["due_date"] = None
        else:
            try:
                clean["due_date"] = date.fromisoformat(str(raw)[:10])
            except ValueError:
                errors["due_date"] = "must be an ISO date (YYYY-MM-DD)"

    if "assignee_id" in data:
        assignee_id = data.get("assignee_id")
        if assignee_id is None:
            clean["assignee_id"] = None
        elif not isinstance(assignee_id, int) or not membership_service.is_member(project, assignee_id):
            errors["assignee_id"] = "assignee must be a member of the project"
        else:
            clean["assignee_id"] = assignee_id

    if errors:
        raise ValidationError("Invalid task data", details=errors)
    return clean


def list_tasks(principal, project_id, status=None, assignee_id=None):
    project, _ = membership_service.authorize(principal, project_id)
    q = Task.query.filter_by(project_id=project.id)
    if status:
        q = q.filter_by(status=status)
    if assignee_id:
        q = q.filter_by(assignee_id=assignee_id)
    return q.order_by(Task.created_at.desc(), Task.id.desc()).all()


def get_task(principal, task_id) -> Task:
    task = load_task(principal, task_id)
    membership_service.authorize(principal, task.project_id)
    return task


def create_task(principal, project_id, data: dict) -> Task:
    project, _ = membership_service.authorize(principal, project_id, can_write, "create tasks in this project")
    fields = _validate(project, data, partial=False)
    task = Task(
        tenant_id=project.tenant_id,
        project_id=project.id,
        created_by=principal.user_id,
        **fields,
    )
    db.session.add(task)
    db.session.flush()
    record_activity(
        tenant_id=project.tenant_id,
        project_id=project.id,
        user_id=principal.user_id,
        action="created",
        entity_type="task",
        entity_id=task.id,
        entity_name=task.title,
    )
    db.session.commit()
    return task


def update_task(principal, task_id, data: dict) -> Task:
    task = load_task(principal, task_id)
    project, _ = membership_service.authorize(principal, task.project_id, can_write, "edit tasks in this project")
    for key, value in _validate(project, data, partial=True).items():
        setattr(task, key, value)
    record_activity(
        tenant_id=task.tenant_id,
        project_id=task.project_id,
        user_id=principal.user_id,
        action="updated",
        entity_type="task",
        entity_id=task.id,
        entity_name=task.title,
    )
    db.session.commit()
    return task


def delete_task(principal, task_id) -> None:
    task = load_task(principal, task_id)
    membership_service.authorize(principal, task.project_id, can_write, "delete tasks in this project")
    record_activity(
        tenant_id=task.tenant_id,
        project_id=task.project_id,
        user_id=principal.user_id,
        action="deleted",
        entity_type="task",
        entity_id=task.id,
        entity_name=task.title,
    )
    db.session.delete(task)
    db.session.commit()
