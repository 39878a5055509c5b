"""
Crypto utilities — bcrypt password hashing and share-token generation.

Password hashing is only a primitive here: there is no reset flow.
"""

import secrets
import string

import bcrypt

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password with bcrypt (12 rounds)."""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        password_hash.encode("utf-8"),
    )


def generate_invitation_token() -> str:
    """Unguessable URL-safe token (256 bits of entropy)."""
    return secrets.token_urlsafe(32)


def generate_share_code(length: int = 6) -> str:
    """Random ``[A-Z0-9]`` code; uniqueness is checked by the caller."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))
