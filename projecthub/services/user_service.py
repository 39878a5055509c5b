"""
User Service — signup, signin and profile lookup.

Signup provisions a fresh tenant for a new account, unless it carries an
invitation token: then the account is created in the inviting tenant and
the invitation is accepted straight away.
"""

import logging
import re
import secrets

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError

from projecthub.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidCredentialError,
    PrincipalNotFoundError,
    TenantInactiveError,
    ValidationError,
)
from projecthub.models import db
from projecthub.models.auth import Tenant, User
from projecthub.models.base import utcnow
from projecthub.services.identity import principal_for
from projecthub.services.jwt_service import token_response
from projecthub.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def normalize_email(email) -> str:
    """Validate syntax and return the lower-cased address."""
    if not email or not isinstance(email, str):
        raise ValidationError("email is required", details={"email": "required"})
    try:
        valid = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": str(e)}) from e
    return valid.normalized.lower()


def _unique_slug(name: str) -> str:
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")[:80] or "org"
    slug = base
    while Tenant.query.filter_by(slug=slug).first() is not None:
        slug = f"{base}-{secrets.token_hex(3)}"
    return slug


# ═══════════════════════════════════════════════════════════════
# Signup / Signin
# ═══════════════════════════════════════════════════════════════
def signup(email, password, full_name, organization_name=None, invitation_token=None, now=None):
    """Create a user and return ``(user, token_body)``.

    Without ``invitation_token`` a fresh tenant is provisioned for the new
    account. With one, the account is created inside the inviting tenant
    and the invitation is accepted in the same call; ``organization_name``
    is ignored.
    """
    email = normalize_email(email)
    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("full_name is required", details={"full_name": "required"})
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"password": "too_short"},
        )

    if invitation_token:
        return _signup_invited(email, password, full_name, invitation_token, now)

    if User.query.filter_by(email=email).first() is not None:
        raise ConflictError("Email already registered")

    org_name = (organization_name or "").strip() or f"{full_name}'s Organization"
    tenant = Tenant(name=org_name, slug=_unique_slug(org_name))
    db.session.add(tenant)
    db.session.flush()

    user = _create_user(tenant.id, email, password, full_name)
    logger.info("Signup: user %s created tenant %s (%s)", user.id, tenant.id, tenant.slug)
    return user, token_response(user.id, user.tenant_id)


def _create_user(tenant_id, email, password, full_name) -> User:
    user = User(
        tenant_id=tenant_id,
        email=email,
        password_hash=hash_password(password),
        full_name=full_name,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Email already registered") from exc
    return user


def _signup_invited(email, password, full_name, token, now):
    # invitation_service imports this module for email helpers
    from projecthub.services import invitation_service

    invitation = invitation_service.get_invitation_by_token(token, now=now)
    if invitation.email != email:
        raise ForbiddenError(
            "This invitation was sent to a different email address. "
            "Sign up with the invited address to accept it."
        )
    tenant = db.session.get(Tenant, invitation.tenant_id)
    if not tenant.is_active:
        raise TenantInactiveError()
    if get_user_by_email(tenant.id, email) is not None:
        raise ConflictError("Email already registered in this organization; sign in to accept the invitation")

    user = _create_user(tenant.id, email, password, full_name)
    invitation_service.accept_invitation(principal_for(user), token, now=now)

    logger.info("Signup: user %s joined tenant %s via invitation %s", user.id, tenant.id, invitation.id)
    return user, token_response(user.id, user.tenant_id)


def signin(email, password, tenant_slug=None, now=None):
    """Verify credentials and return ``(user, token_body)``.

    ``tenant_slug`` is only needed when the same email exists in more than
    one tenant.
    """
    email = normalize_email(email)
    q = User.query.filter_by(email=email)
    if tenant_slug:
        q = q.join(Tenant, Tenant.id == User.tenant_id).filter(Tenant.slug == tenant_slug)
    candidates = q.all()

    if not candidates:
        raise InvalidCredentialError("Invalid email or password")
    if len(candidates) > 1:
        raise ValidationError(
            "This email belongs to several organizations; tenant_slug is required",
            details={"tenants": sorted(u.tenant.slug for u in candidates)},
        )

    user = candidates[0]
    if not verify_password(password or "", user.password_hash):
        logger.info("Signin failed for user %s", user.id)
        raise InvalidCredentialError("Invalid email or password")
    if not user.tenant.is_active:
        raise TenantInactiveError()

    user.last_login_at = now or utcnow()
    db.session.commit()
    return user, token_response(user.id, user.tenant_id)


# ═══════════════════════════════════════════════════════════════
# Lookup
# ═══════════════════════════════════════════════════════════════
def get_user(principal) -> User:
    user = db.session.get(User, principal.user_id)
    if user is None:
        raise PrincipalNotFoundError()
    return user


def get_user_by_email(tenant_id: int, email: str) -> User | None:
    """Find a user by email within a tenant."""
    return User.query.filter_by(tenant_id=tenant_id, email=email).first()
