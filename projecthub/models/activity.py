"""ActivityLog — append-only project activity feed."""

from projecthub.models import db
from projecthub.models.base import TenantModel, utcnow


class ActivityLog(TenantModel):
    __tablename__ = "activity_logs"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = db.Column(db.String(50), nullable=False)  # created, updated, joined, ...
    entity_type = db.Column(db.String(30), nullable=False)
    entity_id = db.Column(db.Integer, nullable=True)
    entity_name = db.Column(db.String(300), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        db.Index("ix_activity_logs_project_created", "project_id", "created_at"),
    )

    project = db.relationship("Project", back_populates="activities")
    user = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "user": self.user.to_summary() if self.user else None,
        }
