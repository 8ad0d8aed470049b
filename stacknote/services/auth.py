"""Authentication errors and password hashing."""

import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from stacknote.core import settings

logger = logging.getLogger(__name__)

# Argon2id; time and memory cost are configurable so tests can run cheaply
ph = PasswordHasher(
    time_cost=settings.password_hash_time_cost,
    memory_cost=settings.password_hash_memory_cost,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

_dummy_hash: str | None = None


class AuthError(Exception):
    """Base authentication error."""

    pass


class InvalidCredentialsError(AuthError):
    """Unknown login identifier or wrong secret.

    Both cases share this type and message so callers cannot tell them apart.
    """

    pass


class MissingTokenError(AuthError):
    """Expected token cookie was not sent."""

    pass


class TokenError(AuthError):
    """Base class for token validation failures."""

    pass


class MalformedTokenError(TokenError):
    """Token failed signature or structural validation."""

    pass


class TokenExpiredError(TokenError):
    """Token payload expiry has passed."""

    pass


class TokenRevokedError(TokenError):
    """Token is not usable according to the token store (revoked or expired)."""

    pass


class TokenKindError(TokenError):
    """Token of the wrong kind was presented (e.g. refresh used as access)."""

    pass


class IdentityUnavailableError(AuthError):
    """Token owner no longer exists or is disabled."""

    pass


class InvalidPasswordError(AuthError):
    """Password change input was rejected."""

    pass


class DuplicateAccountError(AuthError):
    """Email or username already taken."""

    pass


class UserNotFoundError(AuthError):
    """User record does not exist."""

    pass


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError):
        logger.warning("Stored password hash could not be verified")
        return False


def burn_password_check(password: str) -> None:
    """Spend the same time as a real verification for unknown identifiers."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("stacknote-dummy-password")
    verify_password(password, _dummy_hash)
