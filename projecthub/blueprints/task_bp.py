"""
Task Blueprint.

    GET    /api/v1/projects/<project_id>/tasks   ?status=&assignee_id=
    POST   /api/v1/projects/<project_id>/tasks
    GET    /api/v1/tasks/<id>
    PUT    /api/v1/tasks/<id>
    DELETE /api/v1/tasks/<id>

    GET    /api/v1/tasks/<id>/comments
    POST   /api/v1/tasks/<id>/comments
    DELETE /api/v1/comments/<id>
"""

from flask import Blueprint, g, jsonify, request

from projecthub.blueprints import json_body
from projecthub.middleware.jwt_auth import require_auth
from projecthub.services import comment_service, task_service

task_bp = Blueprint("task_bp", __name__, url_prefix="/api/v1")


@task_bp.route("/projects/<int:project_id>/tasks", methods=["GET"])
@require_auth
def list_tasks(project_id):
    tasks = task_service.list_tasks(
        g.principal,
        project_id,
        status=request.args.get("status"),
        assignee_id=request.args.get("assignee_id", type=int),
    )
    return jsonify([t.to_dict() for t in tasks]), 200


@task_bp.route("/projects/<int:project_id>/tasks", methods=["POST"])
@require_auth
def create_task(project_id):
    task = task_service.create_task(g.principal, project_id, json_body())
    return jsonify(task.to_dict()), 201


@task_bp.route("/tasks/<int:task_id>", methods=["GET"])
@require_auth
def get_task(task_id):
    return jsonify(task_service.get_task(g.principal, task_id).to_dict()), 200


@task_bp.route("/tasks/<int:task_id>", methods=["PUT", "PATCH"])
@require_auth
def update_task(task_id):
    task = task_service.update_task(g.principal, task_id, json_body())
    return jsonify(task.to_dict()), 200


@task_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@require_auth
def delete_task(task_id):
    task_service.delete_task(g.principal, task_id)
    return jsonify({"message": "Task deleted successfully"}), 200


# ── Comments ─────────────────────────────────────────────────────────────


@task_bp.route("/tasks/<int:task_id>/comments", methods=["GET"])
@require_auth
def list_comments(task_id):
    comments = comment_service.list_comments(g.principal, task_id)
    return jsonify([c.to_dict() for c in comments]), 200


@task_bp.route("/tasks/<int:task_id>/comments", methods=["POST"])
@require_auth
def create_comment(task_id):
    comment = comment_service.create_comment(g.principal, task_id, json_body().get("content"))
    return jsonify(comment.to_dict()), 201


@task_bp.route("/comments/<int:comment_id>", methods=["DELETE"])
@require_auth
def delete_comment(comment_id):
    comment_service.delete_comment(g.principal, comment_id)
    return jsonify({"message": "Comment deleted successfully"}), 200
