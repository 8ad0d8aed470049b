"""Per-request access token validation.

Validation is two-layered: a token must both decode (signature, structure,
payload expiry, kind) and be found usable in the token store. Failures are
never raised to the client. They yield an anonymous outcome, and the caller
clears the access cookie so the client stops resending a dead credential.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from stacknote.models.session_token import TokenKind
from stacknote.models.user import User, UserRole
from stacknote.services.auth import TokenError, TokenExpiredError
from stacknote.services.credentials import CredentialVerifier
from stacknote.services.token_codec import TokenCodec, get_token_codec
from stacknote.services.token_store import TokenStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request."""

    user_id: UUID
    email: str
    username: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(user_id=user.id, email=user.email, username=user.username, role=user.role)


class Rejection(str, enum.Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    WRONG_KIND = "wrong_kind"
    REVOKED = "revoked"
    IDENTITY_UNAVAILABLE = "identity_unavailable"


@dataclass(frozen=True)
class AuthOutcome:
    principal: Principal | None = None
    rejection: Rejection | None = None

    @property
    def authenticated(self) -> bool:
        return self.principal is not None

    @property
    def should_clear_cookie(self) -> bool:
        # A token was presented and turned out to be bad
        return self.rejection is not None and self.rejection is not Rejection.MISSING


class RequestAuthenticator:
    """Resolve a presented access token to a principal, short-circuiting to anonymous."""

    def __init__(self, session: AsyncSession, codec: TokenCodec | None = None):
        self.session = session
        self.codec = codec or get_token_codec()
        self.tokens = TokenStore(session)
        self.credentials = CredentialVerifier(session)

    async def authenticate(self, token: str | None, now: datetime | None = None) -> AuthOutcome:
        if not token:
            return AuthOutcome(rejection=Rejection.MISSING)

        try:
            claims = self.codec.decode(token)
        except TokenError as e:
            rejection = (
                Rejection.EXPIRED if isinstance(e, TokenExpiredError) else Rejection.MALFORMED
            )
            return AuthOutcome(rejection=rejection)

        if claims.kind is not TokenKind.ACCESS:
            logger.warning(
                "Non-access token presented as access token",
                extra={"user_id": str(claims.subject), "reason": claims.kind.value},
            )
            return AuthOutcome(rejection=Rejection.WRONG_KIND)

        record = await self.tokens.find_usable(token, TokenKind.ACCESS, now or datetime.now(UTC))
        if record is None:
            logger.debug("Access token not usable in store", extra={"user_id": str(claims.subject)})
            return AuthOutcome(rejection=Rejection.REVOKED)

        user = await self.credentials.load(record.user_id)
        if user is None or user.is_locked:
            logger.info(
                "Access token owner unavailable",
                extra={"user_id": str(record.user_id)},
            )
            return AuthOutcome(rejection=Rejection.IDENTITY_UNAVAILABLE)

        return AuthOutcome(principal=Principal.from_user(user))
