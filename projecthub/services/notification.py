"""
Notification Service.

``write`` is the sink used by post-commit effects; the query and read-flag
helpers back the notifications blueprint. Every query is scoped to the
recipient's own user id and tenant.
"""

from projecthub.core.exceptions import NotFoundError
from projecthub.models import db
from projecthub.models.base import utcnow
from projecthub.models.notification import NOTIFICATION_TYPES, Notification


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def write(user_id, tenant_id, type, payload):
        """
        Persist one notification for ``user_id``.

        ``payload`` keys: title (required), message, project_id,
        join_request_id.

        Returns:
            The created Notification instance (already committed).
        """
        if type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {type}")
        notif = Notification(
            tenant_id=tenant_id,
            user_id=user_id,
            type=type,
            title=payload["title"],
            message=payload.get("message", ""),
            project_id=payload.get("project_id"),
            join_request_id=payload.get("join_request_id"),
        )
        db.session.add(notif)
        db.session.commit()
        return notif

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_user(principal, unread_only=False, limit=50, offset=0):
        """Notifications for the caller, newest first."""
        q = Notification.query_for_tenant(principal.tenant_id).filter_by(user_id=principal.user_id)
        if unread_only:
            q = q.filter_by(is_read=False)
        total = q.count()
        items = (
            q.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset).limit(limit).all()
        )
        return {"items": [n.to_dict() for n in items], "total": total}

    @staticmethod
    def unread_count(principal):
        return Notification.query.filter_by(
            user_id=principal.user_id, tenant_id=principal.tenant_id, is_read=False,
        ).count()

    # ── Read flags ────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(principal, notification_id):
        notif = Notification.query.filter_by(
            id=notification_id, user_id=principal.user_id, tenant_id=principal.tenant_id,
        ).first()
        if notif is None:
            raise NotFoundError(resource="Notification", resource_id=notification_id)
        if not notif.is_read:
            notif.mark_read()
            db.session.commit()
        return notif

    @staticmethod
    def mark_all_read(principal):
        """Returns the number of notifications flipped to read."""
        count = Notification.query.filter_by(
            user_id=principal.user_id, tenant_id=principal.tenant_id, is_read=False,
        ).update({"is_read": True, "read_at": utcnow()}, synchronize_session=False)
        db.session.commit()
        return count
