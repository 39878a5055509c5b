"""
Invitation and JoinRequest models — the two ways into a project besides
creating it.

Invitation:  email-targeted, token-bearing, time-boxed (7 days).
             pending -> accepted | declined | expired
JoinRequest: raised by a user who found the project by its share code.
             pending -> accepted | declined

Rows are never deleted by the lifecycle, only transitioned. At most one
pending row per (project, email) / (project, user) is enforced by partial
unique indexes.
"""

from datetime import timedelta

from projecthub.models import db
from projecthub.models.base import TenantModel, as_utc, utcnow
from projecthub.models.project import ProjectRole, role_column

INVITATION_TTL = timedelta(days=7)

INVITATION_PENDING = "pending"
INVITATION_ACCEPTED = "accepted"
INVITATION_DECLINED = "declined"
INVITATION_EXPIRED = "expired"

INVITABLE_ROLES = {ProjectRole.ADMIN, ProjectRole.MEMBER, ProjectRole.VIEWER}

REQUEST_PENDING = "pending"
REQUEST_ACCEPTED = "accepted"
REQUEST_DECLINED = "declined"


# ═══════════════════════════════════════════════════════════════
# INVITATIONS
# ═══════════════════════════════════════════════════════════════
class Invitation(TenantModel):
    __tablename__ = "invitations"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    email = db.Column(db.String(200), nullable=False)  # stored lower-cased
    role = db.Column(role_column(), nullable=False, default=ProjectRole.MEMBER)
    status = db.Column(db.String(20), nullable=False, default=INVITATION_PENDING)
    invited_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    token = db.Column(db.String(128), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    responded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.Index(
            "uq_invitations_pending_project_email",
            "project_id",
            "email",
            unique=True,
            postgresql_where=db.text("status = 'pending'"),
            sqlite_where=db.text("status = 'pending'"),
        ),
        db.Index("ix_invitations_tenant_email", "tenant_id", "email"),
    )

    project = db.relationship("Project", back_populates="invitations")
    inviter = db.relationship("User", foreign_keys=[invited_by])

    def is_past_expiry(self, now) -> bool:
        """Expired from ``expires_at`` onward, matching the listing and sweep filters."""
        return now >= as_utc(self.expires_at)

    def to_dict(self, include_token=False):
        d = {
            "id": self.id,
            "project_id": self.project_id,
            "email": self.email,
            "role": self.role.value,
            "status": self.status,
            "invited_by": self.invited_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "project": {
                "id": self.project.id,
                "name": self.project.name,
                "description": self.project.description,
            } if self.project else None,
            "inviter": self.inviter.to_summary() if self.inviter else None,
        }
        if include_token:
            d["token"] = self.token
        return d

    def __repr__(self):
        return f"<Invitation {self.id}: {self.email} -> project {self.project_id} ({self.status})>"


# ═══════════════════════════════════════════════════════════════
# JOIN REQUESTS
# ═══════════════════════════════════════════════════════════════
class JoinRequest(TenantModel):
    __tablename__ = "join_requests"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    message = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=REQUEST_PENDING)
    resolved_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        db.Index(
            "uq_join_requests_pending_project_user",
            "project_id",
            "user_id",
            unique=True,
            postgresql_where=db.text("status = 'pending'"),
            sqlite_where=db.text("status = 'pending'"),
        ),
    )

    project = db.relationship("Project", back_populates="join_requests")
    user = db.relationship("User", foreign_keys=[user_id])

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "message": self.message,
            "status": self.status,
            "resolved_by": self.resolved_by,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "user": self.user.to_summary() if self.user else None,
            "project": {
                "id": self.project.id,
                "name": self.project.name,
                "code": self.project.code,
            } if self.project else None,
        }

    def __repr__(self):
        return f"<JoinRequest {self.id}: user {self.user_id} -> project {self.project_id} ({self.status})>"
