"""Standardised API error responses.

Usage
-----
    from projecthub.utils.errors import api_error, E

    return api_error(E.VALIDATION, "name is required")
    return api_error(E.NOT_FOUND, "Project not found")

``register_error_handlers(app)`` maps the service exception hierarchy in
``projecthub.core.exceptions`` onto these responses once, for every blueprint.
"""

from __future__ import annotations

import logging

from flask import jsonify

from projecthub.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ExpiredCredentialError,
    ForbiddenError,
    GoneError,
    InvalidCredentialError,
    NotFoundError,
    PrincipalNotFoundError,
    TenantInactiveError,
    TenantMismatchError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (``ERR_`` prefix)."""

    # Identity – HTTP 401
    AUTH_REQUIRED = "ERR_AUTH_REQUIRED"
    INVALID_CREDENTIAL = "ERR_INVALID_CREDENTIAL"
    EXPIRED_CREDENTIAL = "ERR_EXPIRED_CREDENTIAL"
    PRINCIPAL_NOT_FOUND = "ERR_PRINCIPAL_NOT_FOUND"
    TENANT_INACTIVE = "ERR_TENANT_INACTIVE"

    # Authorization – HTTP 403
    FORBIDDEN = "ERR_FORBIDDEN"

    # Validation – HTTP 400
    VALIDATION = "ERR_VALIDATION"

    # Resource state
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT = "ERR_CONFLICT"
    GONE = "ERR_GONE"

    # Server – HTTP 500
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.AUTH_REQUIRED: 401,
    E.INVALID_CREDENTIAL: 401,
    E.EXPIRED_CREDENTIAL: 401,
    E.PRINCIPAL_NOT_FOUND: 401,
    E.TENANT_INACTIVE: 401,
    E.FORBIDDEN: 403,
    E.VALIDATION: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT: 409,
    E.GONE: 410,
    E.INTERNAL: 500,
}

_AUTH_CODES: dict[type, str] = {
    InvalidCredentialError: E.INVALID_CREDENTIAL,
    ExpiredCredentialError: E.EXPIRED_CREDENTIAL,
    PrincipalNotFoundError: E.PRINCIPAL_NOT_FOUND,
    TenantInactiveError: E.TENANT_INACTIVE,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for developers / UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field errors, etc.).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def register_error_handlers(app):
    """Map service exceptions and stock HTTP errors onto JSON responses."""

    @app.errorhandler(AuthenticationError)
    def _authentication(e):
        return api_error(_AUTH_CODES.get(type(e), E.AUTH_REQUIRED), str(e))

    # Rendered as a plain miss; the guard has already logged the attempt
    @app.errorhandler(TenantMismatchError)
    def _tenant_mismatch(e):
        return api_error(E.NOT_FOUND, f"{e.resource} not found")

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return api_error(E.NOT_FOUND, f"{e.resource} not found")

    @app.errorhandler(ForbiddenError)
    def _forbidden(e):
        return api_error(E.FORBIDDEN, str(e))

    @app.errorhandler(ConflictError)
    def _conflict(e):
        return api_error(E.CONFLICT, str(e))

    @app.errorhandler(GoneError)
    def _gone(e):
        return api_error(E.GONE, str(e))

    @app.errorhandler(ValidationError)
    def _validation(e):
        return api_error(E.VALIDATION, str(e), details=e.details)

    @app.errorhandler(404)
    def _route_not_found(e):
        return api_error(E.NOT_FOUND, "Not found")

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return api_error(E.VALIDATION, "Method not allowed", status=405)

    @app.errorhandler(415)
    def _unsupported_media(e):
        return api_error(E.VALIDATION, e.description or "Unsupported media type", status=415)

    @app.errorhandler(429)
    def _rate_limited(e):
        return api_error("ERR_RATE_LIMITED", "Too many requests", status=429,
                         details={"retry_after": e.description})

    @app.errorhandler(500)
    def _server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")
