"""
Notification Blueprint — polling endpoints for the caller's inbox.

    GET /api/v1/notifications              ?unread_only=true&limit=&offset=
    GET /api/v1/notifications/unread-count
    PUT /api/v1/notifications/<id>/read
    PUT /api/v1/notifications/read-all
"""

from flask import Blueprint, g, jsonify, request

from projecthub.middleware.jwt_auth import require_auth
from projecthub.services.notification import NotificationService

notification_bp = Blueprint("notification_bp", __name__, url_prefix="/api/v1/notifications")


@notification_bp.route("", methods=["GET"])
@require_auth
def list_notifications():
    unread_only = request.args.get("unread_only", "false").lower() == "true"
    limit = min(request.args.get("limit", 50, type=int), 200)
    offset = max(request.args.get("offset", 0, type=int), 0)
    return jsonify(NotificationService.list_for_user(
        g.principal, unread_only=unread_only, limit=limit, offset=offset,
    )), 200


@notification_bp.route("/unread-count", methods=["GET"])
@require_auth
def unread_count():
    return jsonify({"count": NotificationService.unread_count(g.principal)}), 200


@notification_bp.route("/<int:notification_id>/read", methods=["PUT"])
@require_auth
def mark_read(notification_id):
    notif = NotificationService.mark_read(g.principal, notification_id)
    return jsonify(notif.to_dict()), 200


@notification_bp.route("/read-all", methods=["PUT"])
@require_auth
def mark_all_read():
    count = NotificationService.mark_all_read(g.principal)
    return jsonify({"updated": count}), 200
