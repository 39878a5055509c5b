"""
Auth Blueprint — signup / signin endpoints.

  POST /api/v1/auth/signup   — create organization + user, or join one by invitation → access token
  POST /api/v1/auth/signin   — email + password → access token
  GET  /api/v1/auth/me       — current user profile with tenant
  POST /api/v1/auth/signout  — stateless; the client discards its token
"""

from flask import Blueprint, g, jsonify

from projecthub.blueprints import json_body
from projecthub.middleware.jwt_auth import require_auth
from projecthub.services import user_service

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/signup
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/signup", methods=["POST"])
def signup():
    """
    Body: { "email": "...", "password": "...", "full_name": "...",
            "organization_name": "..." (optional),
            "invitation_token": "..." (optional; joins the inviting organization) }
    """
    data = json_body()
    user, tokens = user_service.signup(
        email=data.get("email"),
        password=data.get("password"),
        full_name=data.get("full_name"),
        organization_name=data.get("organization_name"),
        invitation_token=data.get("invitation_token"),
    )
    return jsonify({"user": user.to_dict(), "tenant": user.tenant.to_dict(), **tokens}), 201


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/signin
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/signin", methods=["POST"])
def signin():
    """
    Body: { "email": "...", "password": "...", "tenant_slug": "..." (optional) }
    """
    data = json_body()
    user, tokens = user_service.signin(
        email=data.get("email"),
        password=data.get("password"),
        tenant_slug=data.get("tenant_slug") or None,
    )
    return jsonify({"user": user.to_dict(), "tenant": user.tenant.to_dict(), **tokens}), 200


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    user = user_service.get_user(g.principal)
    return jsonify({**user.to_dict(), "tenant": user.tenant.to_dict()}), 200


@auth_bp.route("/signout", methods=["POST"])
@require_auth
def signout():
    return jsonify({"message": "Signed out successfully"}), 200
