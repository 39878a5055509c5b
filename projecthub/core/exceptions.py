"""
Platform-wide exception hierarchy.

Services raise these types and nothing else for expected failures. The
application factory registers one handler per type (see
``projecthub.utils.errors.register_error_handlers``) so every blueprint gets
the same HTTP status and JSON body for the same outcome.

Usage:
    from projecthub.core.exceptions import NotFoundError, ForbiddenError

    raise NotFoundError(resource="Project", resource_id=42)
    raise ForbiddenError("Only project administrators can send invitations")
"""


# ═══════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════
class AuthenticationError(Exception):
    """Base for every failure to turn a credential into a principal. Maps to 401."""

    default_message = "Authentication required"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidCredentialError(AuthenticationError):
    default_message = "Invalid credential"


class ExpiredCredentialError(AuthenticationError):
    default_message = "Credential has expired"


class PrincipalNotFoundError(AuthenticationError):
    default_message = "User for this credential no longer exists"


class TenantInactiveError(AuthenticationError):
    default_message = "Organization is not active"


# ═══════════════════════════════════════════════════════════════
# Authorization / resource state
# ═══════════════════════════════════════════════════════════════
class TenantMismatchError(Exception):
    """Raised when a caller touches a resource owned by another tenant.

    Security note: the message is for logs only. Over HTTP it is rendered
    exactly like ``NotFoundError(resource)`` so the response never confirms
    the resource exists in another tenant.
    """

    def __init__(
        self,
        caller_tenant_id: int | None,
        resource_tenant_id: int | None,
        *,
        resource: str = "Resource",
    ) -> None:
        self.caller_tenant_id = caller_tenant_id
        self.resource_tenant_id = resource_tenant_id
        self.resource = resource
        super().__init__(
            f"tenant {caller_tenant_id} cannot access resource of tenant {resource_tenant_id}"
        )


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Project", "Invitation").
        resource_id: The key that was looked up. Included in logs and message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ForbiddenError(Exception):
    """Raised when the caller's project role does not permit the operation. Maps to 403."""


class ConflictError(Exception):
    """Raised on uniqueness or idempotency violations. Maps to 409.

    Either pass a ready message, or ``resource``/``field``/``value`` to build
    the standard "already exists" wording.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        resource: str | None = None,
        field: str | None = None,
        value: str | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        if message is None:
            message = f"{resource} with {field}={value!r} already exists"
        super().__init__(message)


class GoneError(Exception):
    """Raised when a resource existed but has expired. Maps to 410."""


class ValidationError(Exception):
    """Raised when input fails validation in the service layer. Maps to 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown, keyed by field name.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)
