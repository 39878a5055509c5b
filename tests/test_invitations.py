"""
Invitation lifecycle.

Tests cover:
  - create: authorization order, validation, pending uniqueness, lazy
    replacement of an expired pending invitation, mail as a post-commit effect
  - public lookup by token, including lazy expiry observed exactly once
  - accept: membership at the proposed role, idempotence, email matching,
    tenant guard, already-member handling, storage race backstop
  - decline, listings and the expiry sweep
"""

from datetime import timedelta

import pytest

from projecthub.core.exceptions import (
    ConflictError,
    ForbiddenError,
    GoneError,
    NotFoundError,
    TenantMismatchError,
    ValidationError,
)
from projecthub.models import db
from projecthub.models.activity import ActivityLog
from projecthub.models.base import as_utc, utcnow
from projecthub.models.invitation import INVITATION_TTL, Invitation
from projecthub.models.notification import Notification
from projecthub.models.project import ProjectMember, ProjectRole
from projecthub.services import invitation_service, membership_service, project_service
from projecthub.services.email_service import EmailService


@pytest.fixture()
def sent_emails(monkeypatch):
    sent = []

    def _fake_send(**kwargs):
        sent.append(kwargs)
        return True

    monkeypatch.setattr(EmailService, "send_invitation", _fake_send)
    return sent


@pytest.fixture()
def invite(owner, project, principal_of, sent_emails):
    """Invite ``email`` to the shared project as the owner."""
    def _invite(email, role="member", now=None):
        return invitation_service.create_invitation(
            principal_of(owner), project.id, email, role=role, now=now,
        )
    return _invite


def _add(project, user, role):
    membership_service.add_member(project, user.id, role)
    db.session.commit()


# ═══════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════

class TestCreate:
    def test_owner_invites(self, invite, project, sent_emails):
        inv = invite("Bob@Acme.io", role="viewer")
        assert inv.email == "bob@acme.io"
        assert inv.role == ProjectRole.VIEWER
        assert inv.status == "pending"
        assert len(inv.token) >= 40
        assert as_utc(inv.expires_at) - as_utc(inv.created_at) == INVITATION_TTL

        assert len(sent_emails) == 1
        assert sent_emails[0]["to_email"] == "bob@acme.io"
        assert sent_emails[0]["token"] == inv.token
        assert sent_emails[0]["project_name"] == "Apollo"

    def test_default_role_is_member(self, invite):
        assert invite("bob@acme.io", role=None).role == ProjectRole.MEMBER

    def test_tokens_are_unique(self, invite):
        assert invite("a@acme.io").token != invite("b@acme.io").token

    def test_admin_may_invite(self, acme, project, make_user, principal_of, sent_emails):
        admin = make_user(acme, "ada@acme.io")
        _add(project, admin, ProjectRole.ADMIN)
        inv = invitation_service.create_invitation(principal_of(admin), project.id, "bob@acme.io")
        assert inv.invited_by == admin.id

    @pytest.mark.parametrize("role", [ProjectRole.MEMBER, ProjectRole.VIEWER])
    def test_non_admin_forbidden(self, acme, project, make_user, principal_of, role):
        user = make_user(acme, "mo@acme.io")
        _add(project, user, role)
        with pytest.raises(ForbiddenError):
            invitation_service.create_invitation(principal_of(user), project.id, "bob@acme.io")

    def test_non_member_forbidden(self, acme, project, make_user, principal_of):
        stranger = make_user(acme, "sam@acme.io")
        with pytest.raises(ForbiddenError):
            invitation_service.create_invitation(principal_of(stranger), project.id, "bob@acme.io")

    def test_missing_project(self, owner, principal_of):
        with pytest.raises(NotFoundError):
            invitation_service.create_invitation(principal_of(owner), 4242, "bob@acme.io")

    def test_cross_tenant_project(self, globex, project, make_user, principal_of):
        outsider = make_user(globex, "eve@globex.io")
        with pytest.raises(TenantMismatchError):
            invitation_service.create_invitation(principal_of(outsider), project.id, "bob@acme.io")

    def test_owner_role_rejected(self, invite):
        with pytest.raises(ValidationError):
            invite("bob@acme.io", role="owner")

    def test_unknown_role_rejected(self, invite):
        with pytest.raises(ValidationError):
            invite("bob@acme.io", role="overlord")

    def test_invalid_email(self, invite):
        with pytest.raises(ValidationError):
            invite("bob-at-acme")

    def test_duplicate_pending(self, invite):
        invite("bob@acme.io")
        with pytest.raises(ConflictError):
            invite("BOB@acme.io")
        assert Invitation.query.count() == 1

    def test_existing_member(self, acme, project, invite, make_user):
        bob = make_user(acme, "bob@acme.io")
        _add(project, bob, ProjectRole.MEMBER)
        with pytest.raises(ConflictError):
            invite("bob@acme.io")

    def test_expired_pending_is_replaced(self, invite):
        old = invite("bob@acme.io", now=utcnow() - timedelta(days=8))
        old_id = old.id
        fresh = invite("bob@acme.io")
        assert fresh.id != old_id
        assert db.session.get(Invitation, old_id).status == "expired"

    def test_email_failure_does_not_roll_back(self, owner, project, principal_of, monkeypatch, caplog):
        def _boom(**kwargs):
            raise ConnectionRefusedError("smtp down")

        monkeypatch.setattr(EmailService, "send_invitation", _boom)
        inv = invitation_service.create_invitation(principal_of(owner), project.id, "bob@acme.io")
        assert db.session.get(Invitation, inv.id).status == "pending"
        assert "invitation_email" in caplog.text


# ═══════════════════════════════════════════════════════════════
# Lookup by token
# ═══════════════════════════════════════════════════════════════

class TestLookup:
    def test_pending(self, invite):
        inv = invite("bob@acme.io")
        found = invitation_service.get_invitation_by_token(inv.token)
        assert found.id == inv.id
        body = found.to_dict()
        assert body["project"]["name"] == "Apollo"
        assert body["inviter"]["email"] == "owner@acme.io"
        assert "token" not in body

    def test_unknown_token(self):
        with pytest.raises(NotFoundError):
            invitation_service.get_invitation_by_token("nope")

    def test_expiry_is_monotonic(self, invite):
        inv = invite("bob@acme.io")
        token, inv_id = inv.token, inv.id
        later = utcnow() + INVITATION_TTL + timedelta(seconds=1)

        for _ in range(3):
            with pytest.raises(GoneError):
                invitation_service.get_invitation_by_token(token, now=later)
            assert db.session.get(Invitation, inv_id).status == "expired"

        # even "back in time" an expired invitation never reads as pending
        with pytest.raises(GoneError):
            invitation_service.get_invitation_by_token(token)

    def test_just_before_expiry_is_pending(self, invite):
        inv = invite("bob@acme.io")
        at_edge = as_utc(inv.expires_at) - timedelta(seconds=1)
        assert invitation_service.get_invitation_by_token(inv.token, now=at_edge).status == "pending"

    def test_exactly_at_expiry_is_expired_everywhere(self, acme, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io")
        token, inv_id = inv.token, inv.id
        boundary = as_utc(inv.expires_at)

        assert invitation_service.list_my_invitations(principal_of(bob), now=boundary) == []
        with pytest.raises(GoneError):
            invitation_service.get_invitation_by_token(token, now=boundary)
        assert db.session.get(Invitation, inv_id).status == "expired"

    def test_sweep_at_expiry_agrees_with_lookup(self, invite):
        inv = invite("bob@acme.io")
        token, inv_id = inv.token, inv.id
        boundary = as_utc(inv.expires_at)
        assert invitation_service.expire_stale_invitations(now=boundary) == 1
        assert db.session.get(Invitation, inv_id).status == "expired"
        with pytest.raises(GoneError):
            invitation_service.get_invitation_by_token(token, now=boundary)

    def test_accepted_invitation_not_found(self, acme, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io")
        invitation_service.accept_invitation(principal_of(bob), inv.token)
        with pytest.raises(NotFoundError):
            invitation_service.get_invitation_by_token(inv.token)


# ═══════════════════════════════════════════════════════════════
# Accept
# ═══════════════════════════════════════════════════════════════

class TestAccept:
    def test_accept_creates_membership(self, acme, owner, project, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io", role="admin")

        member = invitation_service.accept_invitation(principal_of(bob), inv.token)
        assert member.role == ProjectRole.ADMIN

        stored = db.session.get(Invitation, inv.id)
        assert stored.status == "accepted"
        assert stored.responded_at is not None

        assert ActivityLog.query.filter_by(project_id=project.id, action="joined", user_id=bob.id).count() == 1
        note = Notification.query.filter_by(user_id=owner.id, type="invitation_accepted").one()
        assert note.project_id == project.id

    def test_accept_twice_conflicts(self, acme, project, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io")
        invitation_service.accept_invitation(principal_of(bob), inv.token)
        with pytest.raises(ConflictError):
            invitation_service.accept_invitation(principal_of(bob), inv.token)
        assert ProjectMember.query.filter_by(project_id=project.id, user_id=bob.id).count() == 1

    def test_email_match_is_case_insensitive(self, acme, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("BOB@ACME.IO")
        invitation_service.accept_invitation(principal_of(bob), inv.token)

    def test_wrong_email_names_required_address(self, acme, project, invite, make_user, principal_of):
        carol = make_user(acme, "carol@acme.io")
        inv = invite("bob@acme.io")
        with pytest.raises(ForbiddenError, match="bob@acme.io"):
            invitation_service.accept_invitation(principal_of(carol), inv.token)
        assert db.session.get(Invitation, inv.id).status == "pending"

    def test_cross_tenant_accept(self, globex, project, invite, make_user, principal_of):
        inv = invite("b@x.io", role="viewer")
        foreign_b = make_user(globex, "b@x.io")
        with pytest.raises(TenantMismatchError):
            invitation_service.accept_invitation(principal_of(foreign_b), inv.token)
        assert ProjectMember.query.filter_by(user_id=foreign_b.id).count() == 0
        assert db.session.get(Invitation, inv.id).status == "pending"

    def test_expired_accept(self, acme, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io")
        with pytest.raises(GoneError):
            invitation_service.accept_invitation(
                principal_of(bob), inv.token, now=utcnow() + timedelta(days=8),
            )
        assert db.session.get(Invitation, inv.id).status == "expired"

    def test_declined_then_accept(self, acme, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io")
        invitation_service.decline_invitation(principal_of(bob), inv.token)
        with pytest.raises(ConflictError):
            invitation_service.accept_invitation(principal_of(bob), inv.token)

    def test_already_member_marks_accepted(self, acme, project, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io")
        _add(project, bob, ProjectRole.VIEWER)

        with pytest.raises(ConflictError):
            invitation_service.accept_invitation(principal_of(bob), inv.token)
        assert db.session.get(Invitation, inv.id).status == "accepted"
        assert membership_service.get_membership(project.id, bob.id).role == ProjectRole.VIEWER

    def test_storage_race_backstop(self, acme, project, invite, make_user, principal_of, monkeypatch):
        """A membership inserted after the pre-check still yields Conflict, not a duplicate."""
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io")
        _add(project, bob, ProjectRole.MEMBER)

        monkeypatch.setattr(membership_service, "get_membership", lambda project_id, user_id: None)
        with pytest.raises(ConflictError):
            invitation_service.accept_invitation(principal_of(bob), inv.token)

        monkeypatch.undo()
        assert ProjectMember.query.filter_by(project_id=project.id, user_id=bob.id).count() == 1
        assert db.session.get(Invitation, inv.id).status == "accepted"

    def test_reinvite_after_acceptance(self, acme, owner, project, invite, make_user, principal_of):
        carol = make_user(acme, "c@x.io")
        first = invite("c@x.io")
        invitation_service.accept_invitation(principal_of(carol), first.token)

        # still a member: the explicit row blocks a new invitation
        with pytest.raises(ConflictError):
            invite("c@x.io")

        project_service.remove_member(principal_of(owner), project.id, carol.id)
        second = invite("c@x.io")
        assert second.status == "pending"
        assert db.session.get(Invitation, first.id).status == "accepted"


# ═══════════════════════════════════════════════════════════════
# Decline / listings / sweep
# ═══════════════════════════════════════════════════════════════

class TestDeclineAndListings:
    def test_decline(self, acme, project, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        inv = invite("bob@acme.io")
        invitation_service.decline_invitation(principal_of(bob), inv.token)
        assert db.session.get(Invitation, inv.id).status == "declined"
        assert membership_service.get_membership(project.id, bob.id) is None

    def test_list_my_invitations(self, acme, invite, make_user, principal_of):
        bob = make_user(acme, "bob@acme.io")
        invite("bob@acme.io")
        invite("carol@acme.io")
        mine = invitation_service.list_my_invitations(principal_of(bob))
        assert [i.email for i in mine] == ["bob@acme.io"]

    def test_list_project_invitations_admin_only(self, acme, owner, project, invite, make_user, principal_of):
        invite("bob@acme.io")
        assert len(invitation_service.list_project_invitations(principal_of(owner), project.id)) == 1

        member = make_user(acme, "mo@acme.io")
        _add(project, member, ProjectRole.MEMBER)
        with pytest.raises(ForbiddenError):
            invitation_service.list_project_invitations(principal_of(member), project.id)

    def test_expire_sweep(self, invite):
        stale = invite("old@acme.io", now=utcnow() - timedelta(days=10))
        fresh = invite("new@acme.io")
        assert invitation_service.expire_stale_invitations() == 1
        assert db.session.get(Invitation, stale.id).status == "expired"
        assert db.session.get(Invitation, fresh.id).status == "pending"
