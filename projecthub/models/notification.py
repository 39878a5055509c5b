"""
Notification domain model.

Models:
    - Notification: in-app notification record with read tracking

One record per recipient per event; append-only apart from the read flag.
"""

from projecthub.models import db
from projecthub.models.base import TenantModel, utcnow

# ── Constants ────────────────────────────────────────────────────────────────

NOTIFY_JOIN_REQUEST = "join_request"
NOTIFY_JOIN_REQUEST_ACCEPTED = "join_request_accepted"
NOTIFY_JOIN_REQUEST_DECLINED = "join_request_declined"
NOTIFY_INVITATION_ACCEPTED = "invitation_accepted"
NOTIFY_MEMBER_REMOVED = "member_removed"

NOTIFICATION_TYPES = {
    NOTIFY_JOIN_REQUEST,
    NOTIFY_JOIN_REQUEST_ACCEPTED,
    NOTIFY_JOIN_REQUEST_DECLINED,
    NOTIFY_INVITATION_ACCEPTED,
    NOTIFY_MEMBER_REMOVED,
}


class Notification(TenantModel):
    """In-app notification entity."""

    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    type = db.Column(db.String(40), nullable=False)
    title = db.Column(db.String(300), nullable=False)
    message = db.Column(db.Text, default="")

    # Link to source entity
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    join_request_id = db.Column(
        db.Integer, db.ForeignKey("join_requests.id", ondelete="SET NULL"), nullable=True,
    )

    # Read tracking
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        db.Index("ix_notifications_user_unread", "user_id", "is_read"),
    )

    def mark_read(self):
        self.is_read = True
        self.read_at = utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "project_id": self.project_id,
            "join_request_id": self.join_request_id,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Notification {self.id}: {self.title[:40]}>"
