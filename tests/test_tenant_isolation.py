"""
Cross-tenant isolation across every service entry point.

A caller from tenant Globex must get TenantMismatchError (never a soft
"no access") for any Acme resource addressed by id, and every such attempt
must leave a high-severity security event behind. Repeated attempts by
the same user escalate the guard log to ERROR.
"""

import logging
import time

import pytest

from projecthub.core.exceptions import NotFoundError, TenantMismatchError
from projecthub.models import db
from projecthub.models.notification import Notification
from projecthub.services import (
    invitation_service,
    join_request_service,
    membership_service,
    project_service,
    task_service,
)
from projecthub.services.activity import list_project_activity
from projecthub.services.notification import NotificationService
from projecthub.services.security_observability import (
    get_recent_security_events,
    record_security_event,
    repeat_offenders,
)


@pytest.fixture()
def intruder(globex, make_user):
    """Same email as the Acme owner, different tenant."""
    return make_user(globex, "owner@acme.io", "Impostor")


@pytest.fixture()
def task(owner, project, principal_of):
    return task_service.create_task(principal_of(owner), project.id, {"title": "Secret"})


def _events():
    return get_recent_security_events(event_type="tenant_mismatch")


# ═══════════════════════════════════════════════════════════════
# Project-scoped operations
# ═══════════════════════════════════════════════════════════════

_PROJECT_CALLS = [
    ("get_project", lambda p, pid: project_service.get_project(p, pid)),
    ("update_project", lambda p, pid: project_service.update_project(p, pid, {"name": "pwned"})),
    ("delete_project", lambda p, pid: project_service.delete_project(p, pid)),
    ("list_members", lambda p, pid: membership_service.list_members(p, pid)),
    ("remove_member", lambda p, pid: project_service.remove_member(p, pid, 1)),
    ("list_tasks", lambda p, pid: task_service.list_tasks(p, pid)),
    ("create_task", lambda p, pid: task_service.create_task(p, pid, {"title": "x"})),
    ("list_activity", lambda p, pid: list_project_activity(p, pid)),
    ("create_invitation", lambda p, pid: invitation_service.create_invitation(p, pid, "a@globex.io")),
    ("list_invitations", lambda p, pid: invitation_service.list_project_invitations(p, pid)),
    ("list_join_requests", lambda p, pid: join_request_service.list_pending_requests(p, pid)),
]


class TestProjectScoped:
    @pytest.mark.parametrize("name,call", _PROJECT_CALLS, ids=[c[0] for c in _PROJECT_CALLS])
    def test_cross_tenant_rejected(self, project, intruder, principal_of, name, call):
        with pytest.raises(TenantMismatchError) as exc:
            call(principal_of(intruder), project.id)
        assert exc.value.caller_tenant_id == intruder.tenant_id
        assert exc.value.resource_tenant_id == project.tenant_id
        assert exc.value.resource == "Project"

        events = _events()
        assert len(events) == 1
        assert events[0].severity == "high"
        assert events[0].caller_tenant_id == intruder.tenant_id
        assert events[0].user_id == intruder.id
        assert events[0].resource_id == project.id

    def test_project_survives_attempts(self, project, intruder, principal_of):
        with pytest.raises(TenantMismatchError):
            project_service.delete_project(principal_of(intruder), project.id)
        assert project_service.get_project(principal_of(project.creator), project.id)["name"] == "Apollo"

    def test_list_projects_is_tenant_scoped(self, project, intruder, principal_of):
        assert project_service.list_projects(principal_of(intruder)) == []

    def test_missing_project_is_not_found_not_mismatch(self, intruder, principal_of):
        with pytest.raises(NotFoundError):
            project_service.get_project(principal_of(intruder), 9999)
        assert _events() == []


# ═══════════════════════════════════════════════════════════════
# Tasks / join requests / invitations addressed by their own ids
# ═══════════════════════════════════════════════════════════════

class TestOtherEntities:
    @pytest.mark.parametrize("op", ["get", "update", "delete"])
    def test_task_by_id(self, task, intruder, principal_of, op):
        p = principal_of(intruder)
        with pytest.raises(TenantMismatchError):
            if op == "get":
                task_service.get_task(p, task.id)
            elif op == "update":
                task_service.update_task(p, task.id, {"title": "pwned"})
            else:
                task_service.delete_task(p, task.id)

    def test_join_request_resolution(self, acme, globex, project, make_user, principal_of):
        rick = make_user(acme, "rick@acme.io")
        jr = join_request_service.create_join_request(principal_of(rick), project.code)

        globex_admin = make_user(globex, "boss@globex.io")
        with pytest.raises(TenantMismatchError):
            join_request_service.accept_join_request(principal_of(globex_admin), jr.id)
        with pytest.raises(TenantMismatchError):
            join_request_service.decline_join_request(principal_of(globex_admin), jr.id)
        assert membership_service.get_membership(project.id, rick.id) is None

    def test_invitation_decline(self, owner, project, intruder, principal_of, monkeypatch):
        monkeypatch.setattr("projecthub.services.email_service.EmailService.send_invitation",
                            lambda **kwargs: True)
        inv = invitation_service.create_invitation(principal_of(owner), project.id, "owner2@acme.io")
        with pytest.raises(TenantMismatchError):
            invitation_service.decline_invitation(principal_of(intruder), inv.token)

    def test_same_email_distinct_identities(self, owner, project, intruder):
        assert intruder.id != owner.id
        # no explicit row, not the creator, and the project is foreign
        with pytest.raises(TenantMismatchError):
            membership_service.resolve_access(intruder.id, project.id, intruder.tenant_id)

    def test_membership_row_does_not_leak(self, owner, project, intruder):
        # owner has an explicit acme row; a globex tenant id must not match it
        with pytest.raises(TenantMismatchError):
            membership_service.resolve_access(owner.id, project.id, intruder.tenant_id)


# ═══════════════════════════════════════════════════════════════
# Notifications are private to their recipient
# ═══════════════════════════════════════════════════════════════

class TestNotifications:
    def test_cannot_read_someone_elses(self, owner, acme, intruder, principal_of):
        note = NotificationService.write(owner.id, acme.id, "member_removed", {"title": "hi"})
        with pytest.raises(NotFoundError):
            NotificationService.mark_read(principal_of(intruder), note.id)
        assert NotificationService.list_for_user(principal_of(intruder))["total"] == 0
        assert NotificationService.mark_all_read(principal_of(intruder)) == 0
        assert db.session.get(Notification, note.id).is_read is False

    def test_owner_reads_own(self, owner, acme, principal_of):
        p = principal_of(owner)
        note = NotificationService.write(owner.id, acme.id, "member_removed", {"title": "hi"})
        NotificationService.write(owner.id, acme.id, "member_removed", {"title": "again"})
        assert NotificationService.unread_count(p) == 2
        assert NotificationService.mark_read(p, note.id).is_read is True
        assert NotificationService.mark_all_read(p) == 1
        assert NotificationService.unread_count(p) == 0


# ═══════════════════════════════════════════════════════════════
# Repeated cross-tenant attempts
# ═══════════════════════════════════════════════════════════════

class TestRepeatOffenders:
    def test_escalates_to_error_after_threshold(self, project, intruder, principal_of, caplog):
        p = principal_of(intruder)
        caplog.set_level(logging.WARNING, logger="projecthub.services.tenant_guard")
        for _ in range(5):
            with pytest.raises(TenantMismatchError):
                project_service.get_project(p, project.id)

        guard_records = [r for r in caplog.records if r.name == "projecthub.services.tenant_guard"]
        assert [r.levelno for r in guard_records] == [logging.WARNING] * 4 + [logging.ERROR]
        assert guard_records[-1].user_id == intruder.id
        assert repeat_offenders() == {intruder.id: 5}

    def test_window_expires(self, project, intruder, principal_of):
        p = principal_of(intruder)
        for _ in range(5):
            with pytest.raises(TenantMismatchError):
                project_service.get_project(p, project.id)
        assert repeat_offenders(now=time.time() + 301) == {}

    def test_anonymous_events_are_not_attributed(self):
        for _ in range(6):
            record_security_event(
                event_type="tenant_mismatch", resource="Project",
                caller_tenant_id=1, resource_tenant_id=2,
            )
        assert repeat_offenders() == {}
        assert len(_events()) == 6
