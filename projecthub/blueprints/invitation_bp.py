"""
Invitation Blueprint.

    POST /api/v1/invitations                         create (owner/admin)
    GET  /api/v1/invitations/mine                    pending invitations for me
    GET  /api/v1/projects/<id>/invitations           pending invitations of a project
    GET  /api/v1/invitations/<token>                 public lookup (no auth)
    POST /api/v1/invitations/<token>/accept
    POST /api/v1/invitations/<token>/decline
"""

from flask import Blueprint, g, jsonify

from projecthub.blueprints import json_body
from projecthub.core.exceptions import ValidationError
from projecthub.middleware.jwt_auth import require_auth
from projecthub.services import invitation_service

invitation_bp = Blueprint("invitation_bp", __name__, url_prefix="/api/v1")


@invitation_bp.route("/invitations", methods=["POST"])
@require_auth
def create_invitation():
    """Body: { "project_id": 1, "email": "...", "role": "member" }"""
    data = json_body()
    project_id = data.get("project_id")
    if not isinstance(project_id, int):
        raise ValidationError("project_id is required", details={"project_id": "required"})
    invitation = invitation_service.create_invitation(
        g.principal, project_id, data.get("email"), role=data.get("role"),
    )
    return jsonify(invitation.to_dict(include_token=True)), 201


@invitation_bp.route("/invitations/mine", methods=["GET"])
@require_auth
def list_my_invitations():
    rows = invitation_service.list_my_invitations(g.principal)
    return jsonify([i.to_dict(include_token=True) for i in rows]), 200


@invitation_bp.route("/projects/<int:project_id>/invitations", methods=["GET"])
@require_auth
def list_project_invitations(project_id):
    rows = invitation_service.list_project_invitations(g.principal, project_id)
    return jsonify([i.to_dict() for i in rows]), 200


@invitation_bp.route("/invitations/<token>", methods=["GET"])
def get_invitation(token):
    invitation = invitation_service.get_invitation_by_token(token)
    return jsonify(invitation.to_dict()), 200


@invitation_bp.route("/invitations/<token>/accept", methods=["POST"])
@require_auth
def accept_invitation(token):
    member = invitation_service.accept_invitation(g.principal, token)
    return jsonify({"message": "Invitation accepted successfully", "membership": member.to_dict()}), 200


@invitation_bp.route("/invitations/<token>/decline", methods=["POST"])
@require_auth
def decline_invitation(token):
    invitation_service.decline_invitation(g.principal, token)
    return jsonify({"message": "Invitation declined"}), 200
