"""
Auth Models — tenants and users.

A User belongs to exactly one Tenant. The same email may exist in several
tenants as distinct users, so uniqueness is (tenant_id, email). Profile
fields (full_name, avatar_url) live on the user row and share its id.
"""

from projecthub.models import db
from projecthub.models.base import TenantModel, utcnow

TENANT_ACTIVE = "active"
TENANT_SUSPENDED = "suspended"
TENANT_CANCELLED = "cancelled"


# ═══════════════════════════════════════════════════════════════
# 1. TENANTS
# ═══════════════════════════════════════════════════════════════
class Tenant(db.Model):
    __tablename__ = "tenants"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=TENANT_ACTIVE)
    plan = db.Column(db.String(50), nullable=False, default="free")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    users = db.relationship("User", back_populates="tenant", lazy="dynamic", passive_deletes=True)

    @property
    def is_active(self) -> bool:
        return self.status == TENANT_ACTIVE

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "status": self.status,
            "plan": self.plan,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Tenant {self.id}: {self.slug} ({self.status})>"


# ═══════════════════════════════════════════════════════════════
# 2. USERS
# ═══════════════════════════════════════════════════════════════
class User(TenantModel):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False)
    password_hash = db.Column(db.String(256))
    full_name = db.Column(db.String(200))
    avatar_url = db.Column(db.String(500))
    last_login_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Composite unique: same email can exist in different tenants
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "email", name="uq_user_tenant_email"),
        db.Index("ix_users_email", "email"),
    )

    # Relationships
    tenant = db.relationship("Tenant", back_populates="users")

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def to_summary(self):
        """Public identity fields — safe to embed in other resources."""
        return {
            "id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "avatar_url": self.avatar_url,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "email": self.email,
            "full_name": self.full_name,
            "avatar_url": self.avatar_url,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"
