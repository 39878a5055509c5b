"""
TenantModel — Abstract base class for tenant-scoped models.

Every entity below Tenant inherits from TenantModel instead of db.Model
directly. This adds:
  - tenant_id FK column with index (ON DELETE CASCADE from tenants)
  - query_for_tenant(tenant_id) classmethod
  - utcnow() / as_utc() helpers shared by all timestamp columns
"""

from datetime import datetime, timezone

from projecthub.models import db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on round-trip; treat naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TenantModel(db.Model):
    """Abstract base for tenant-scoped tables."""
    __abstract__ = True

    tenant_id = db.Column(
        db.Integer,
        db.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    @classmethod
    def query_for_tenant(cls, tenant_id):
        """Return a query filtered by tenant_id."""
        return cls.query.filter_by(tenant_id=tenant_id)
