"""Project domain model: projects, the role enum, and the membership edge."""

import enum

from projecthub.models import db
from projecthub.models.base import TenantModel, utcnow

PROJECT_STATUSES = {"active", "on_hold", "completed", "archived"}
DEFAULT_PROJECT_COLOR = "#14b8a6"


class ProjectRole(str, enum.Enum):
    """Project-scoped permission level: OWNER > ADMIN > MEMBER > VIEWER."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"

    @classmethod
    def parse(cls, value):
        """Return the enum member for ``value`` or None if it is not a role."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


def role_column():
    return db.Enum(
        ProjectRole,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Project(TenantModel):
    """A workspace owned by a tenant and discoverable by its share code."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    color = db.Column(db.String(7), nullable=False, default=DEFAULT_PROJECT_COLOR)
    status = db.Column(db.String(20), nullable=False, default="active")
    code = db.Column(db.String(12), nullable=False, unique=True)
    created_by = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    creator = db.relationship("User", foreign_keys=[created_by])
    members = db.relationship(
        "ProjectMember", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    invitations = db.relationship(
        "Invitation", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    join_requests = db.relationship(
        "JoinRequest", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    tasks = db.relationship(
        "Task", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    activities = db.relationship(
        "ActivityLog", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    __table_args__ = (
        db.Index("ix_projects_tenant_created_by", "tenant_id", "created_by"),
    )

    def to_summary(self) -> dict:
        """Fields shown to any authenticated user who knows the share code."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "code": self.code,
            "status": self.status,
            "color": self.color,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "creator": {
                "id": self.creator.id,
                "full_name": self.creator.full_name,
            } if self.creator else None,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "status": self.status,
            "code": self.code,
            "created_by": self.created_by,
            "member_count": self.members.count(),
            "task_count": self.tasks.count(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Project {self.id}: {self.code}>"


class ProjectMember(TenantModel):
    """The authoritative access-control edge between a user and a project."""

    __tablename__ = "project_members"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False,
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    role = db.Column(role_column(), nullable=False, default=ProjectRole.MEMBER)
    joined_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("project_id", "user_id", name="uq_project_member"),
        db.Index("ix_project_members_user", "user_id"),
    )

    project = db.relationship("Project", back_populates="members")
    user = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "role": self.role.value,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
            "user": self.user.to_summary() if self.user else None,
        }

    def __repr__(self):
        return f"<ProjectMember project={self.project_id} user={self.user_id} {self.role.value}>"
