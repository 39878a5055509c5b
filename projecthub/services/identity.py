"""
Identity & session resolution.

``authenticate(credential)`` turns a bearer token into a ``Principal``:

    1. signature + expiry      → InvalidCredentialError / ExpiredCredentialError
    2. user still exists       → PrincipalNotFoundError
    3. token tenant == user's  → InvalidCredentialError
    4. tenant status active    → TenantInactiveError   (checked on every call)

The lookup is read-only. Sign-in bookkeeping such as ``last_login_at`` lives
in ``user_service``.
"""

import logging
from dataclasses import dataclass

import jwt

from projecthub.core.exceptions import (
    ExpiredCredentialError,
    InvalidCredentialError,
    PrincipalNotFoundError,
    TenantInactiveError,
)
from projecthub.models import db
from projecthub.models.auth import Tenant, User
from projecthub.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, passed explicitly into every service call."""

    user_id: int
    tenant_id: int
    email: str


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, tenant_id=user.tenant_id, email=user.email)


def authenticate(credential: str | None) -> Principal:
    if not credential:
        raise InvalidCredentialError("Missing credential")

    try:
        payload = decode_access_token(credential)
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredCredentialError() from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidCredentialError() from exc

    try:
        user_id = int(payload["sub"])
        token_tenant_id = int(payload["tenant_id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidCredentialError("Malformed credential") from exc

    user = db.session.get(User, user_id)
    if user is None:
        raise PrincipalNotFoundError()

    if user.tenant_id != token_tenant_id:
        logger.warning(
            "Token tenant %s does not match tenant %s of user %s",
            token_tenant_id, user.tenant_id, user_id,
        )
        raise InvalidCredentialError()

    tenant = db.session.get(Tenant, user.tenant_id)
    if tenant is None or not tenant.is_active:
        raise TenantInactiveError()

    return principal_for(user)
