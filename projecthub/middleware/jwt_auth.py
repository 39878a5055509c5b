"""
JWT Auth Middleware — resolves the bearer token into ``g.principal``.

Usage:
    @project_bp.route("/projects", methods=["GET"])
    @require_auth
    def list_projects():
        principal = g.principal
        ...

Any ``AuthenticationError`` raised by ``identity.authenticate`` propagates to
the registered error handler and becomes a 401.
"""

import functools

from flask import g, request

from projecthub.services.identity import authenticate


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:].strip() or None


def require_auth(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        g.principal = authenticate(bearer_token())
        return f(*args, **kwargs)
    return decorated
