"""
Join-request Blueprint.

    GET  /api/v1/join-requests/search/<code>
    POST /api/v1/join-requests                      { "project_code": "...", "message": "..." }
    GET  /api/v1/join-requests/project/<project_id>
    POST /api/v1/join-requests/<id>/accept
    POST /api/v1/join-requests/<id>/decline
"""

from flask import Blueprint, g, jsonify

from projecthub.blueprints import json_body
from projecthub.middleware.jwt_auth import require_auth
from projecthub.services import join_request_service

join_request_bp = Blueprint("join_request_bp", __name__, url_prefix="/api/v1/join-requests")


@join_request_bp.route("/search/<code>", methods=["GET"])
@require_auth
def search_by_code(code):
    return jsonify(join_request_service.discover_by_code(g.principal, code)), 200


@join_request_bp.route("", methods=["POST"])
@require_auth
def create_join_request():
    data = json_body()
    join_request = join_request_service.create_join_request(
        g.principal, data.get("project_code"), message=data.get("message"),
    )
    return jsonify(join_request.to_dict()), 201


@join_request_bp.route("/project/<int:project_id>", methods=["GET"])
@require_auth
def list_pending(project_id):
    rows = join_request_service.list_pending_requests(g.principal, project_id)
    return jsonify([r.to_dict() for r in rows]), 200


@join_request_bp.route("/<int:request_id>/accept", methods=["POST"])
@require_auth
def accept(request_id):
    member = join_request_service.accept_join_request(g.principal, request_id)
    return jsonify({"message": "Join request accepted", "membership": member.to_dict()}), 200


@join_request_bp.route("/<int:request_id>/decline", methods=["POST"])
@require_auth
def decline(request_id):
    join_request_service.decline_join_request(g.principal, request_id)
    return jsonify({"message": "Join request declined"}), 200
