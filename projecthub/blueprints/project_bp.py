"""
Project Blueprint.

Endpoints:
    GET    /api/v1/projects
    POST   /api/v1/projects
    GET    /api/v1/projects/<id>
    PUT    /api/v1/projects/<id>
    DELETE /api/v1/projects/<id>
    GET    /api/v1/projects/<id>/members
    DELETE /api/v1/projects/<id>/members/<user_id>
    GET    /api/v1/projects/<id>/activities
"""

from flask import Blueprint, g, jsonify, request

from projecthub.blueprints import json_body
from projecthub.middleware.jwt_auth import require_auth
from projecthub.services import activity, membership_service, project_service

project_bp = Blueprint("project_bp", __name__, url_prefix="/api/v1/projects")


@project_bp.route("", methods=["GET"])
@require_auth
def list_projects():
    return jsonify(project_service.list_projects(g.principal)), 200


@project_bp.route("", methods=["POST"])
@require_auth
def create_project():
    project = project_service.create_project(g.principal, json_body())
    return jsonify(project_service.get_project(g.principal, project.id)), 201


@project_bp.route("/<int:project_id>", methods=["GET"])
@require_auth
def get_project(project_id):
    data = project_service.get_project(g.principal, project_id)
    data["members"] = membership_service.list_members(g.principal, project_id)
    return jsonify(data), 200


@project_bp.route("/<int:project_id>", methods=["PUT", "PATCH"])
@require_auth
def update_project(project_id):
    project = project_service.update_project(g.principal, project_id, json_body())
    return jsonify(project.to_dict()), 200


@project_bp.route("/<int:project_id>", methods=["DELETE"])
@require_auth
def delete_project(project_id):
    project_service.delete_project(g.principal, project_id)
    return jsonify({"message": "Project deleted successfully"}), 200


# ── Members ──────────────────────────────────────────────────────────────

@project_bp.route("/<int:project_id>/members", methods=["GET"])
@require_auth
def list_members(project_id):
    return jsonify(membership_service.list_members(g.principal, project_id)), 200


@project_bp.route("/<int:project_id>/members/<int:user_id>", methods=["DELETE"])
@require_auth
def remove_member(project_id, user_id):
    project_service.remove_member(g.principal, project_id, user_id)
    return jsonify({"message": "Member removed"}), 200


# ── Activity ─────────────────────────────────────────────────────────────

@project_bp.route("/<int:project_id>/activities", methods=["GET"])
@require_auth
def list_activities(project_id):
    limit = request.args.get("limit", 50, type=int)
    return jsonify(activity.list_project_activity(g.principal, project_id, limit=limit)), 200
