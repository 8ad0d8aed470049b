"""Signed, time-bounded session tokens (JWT).

The codec is pure: it neither reads nor writes the token store. A decoded
token proves only that this server signed it and that its payload expiry has
not passed; whether it is still usable is decided by the token store.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
from jwt.exceptions import ExpiredSignatureError, PyJWTError

from stacknote.core import settings
from stacknote.models.session_token import TokenKind
from stacknote.services.auth import MalformedTokenError, TokenExpiredError

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["sub", "type", "iat", "exp", "jti"]


@dataclass(frozen=True)
class IssuedToken:
    """A freshly minted token and the timestamps embedded in it."""

    value: str
    kind: TokenKind
    subject: UUID
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a decoded token."""

    subject: UUID
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    email: str | None = None


class TokenCodec:
    """Encode and verify HMAC-signed JWTs carrying subject, kind and lifetime."""

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None):
        self._secret_key = secret_key or settings.effective_jwt_secret_key
        self._algorithm = algorithm or settings.jwt_algorithm

    @staticmethod
    def ttl_for(kind: TokenKind) -> timedelta:
        """Configured lifetime for a token kind."""
        if kind is TokenKind.ACCESS:
            return timedelta(minutes=settings.access_token_expire_minutes)
        return timedelta(minutes=settings.refresh_token_expire_minutes)

    def issue(
        self,
        subject: UUID,
        kind: TokenKind,
        ttl: timedelta | None = None,
        *,
        email: str | None = None,
        now: datetime | None = None,
    ) -> IssuedToken:
        """Mint a signed token for ``subject``.

        A random ``jti`` keeps two tokens minted in the same second distinct,
        since the token value is the store's lookup key.
        """
        # JWT timestamps have second resolution
        issued_at = (now or datetime.now(UTC)).replace(microsecond=0)
        expires_at = issued_at + (ttl if ttl is not None else self.ttl_for(kind))
        payload: dict[str, Any] = {
            "sub": str(subject),
            "type": kind.value,
            "iat": issued_at,
            "exp": expires_at,
            "jti": secrets.token_hex(16),
        }
        if email is not None:
            payload["email"] = email
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        return IssuedToken(
            value=str(token),
            kind=kind,
            subject=subject,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def decode(self, token: str) -> TokenClaims:
        """Verify signature, structure and payload expiry.

        Raises:
            TokenExpiredError: the payload ``exp`` has passed.
            MalformedTokenError: anything else (bad signature, missing or
                malformed claims, unknown kind).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except ExpiredSignatureError as e:
            logger.debug("Token rejected: expired")
            raise TokenExpiredError("Token has expired") from e
        except PyJWTError as e:
            logger.debug(f"Token rejected: malformed ({type(e).__name__})")
            raise MalformedTokenError(f"Invalid token: {e}") from e

        try:
            return TokenClaims(
                subject=UUID(payload["sub"]),
                kind=TokenKind(payload["type"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
                email=payload.get("email"),
            )
        except (ValueError, TypeError) as e:
            logger.debug("Token rejected: malformed claims")
            raise MalformedTokenError("Invalid token claims") from e


_codec: TokenCodec | None = None


def get_token_codec() -> TokenCodec:
    """Process-wide codec bound to the configured secret."""
    global _codec
    if _codec is None:
        _codec = TokenCodec()
    return _codec
