"""Access token refresh using the long-lived refresh token."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from stacknote.core.cookies import CookieTransport, cookie_transport
from stacknote.models.session_token import TokenKind
from stacknote.models.user import User
from stacknote.services.auth import (
    IdentityUnavailableError,
    MissingTokenError,
    TokenKindError,
    TokenRevokedError,
)
from stacknote.services.credentials import CredentialVerifier
from stacknote.services.token_codec import IssuedToken, TokenCodec, get_token_codec
from stacknote.services.token_store import TokenStore, ensure_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshedSession:
    user: User
    access: IssuedToken
    refresh_expires_at: datetime


class RefreshOrchestrator:
    """Mint a new access token from a usable refresh token.

    Only the user's access tokens are rotated. The refresh token itself stays
    usable until it expires or a revocation event revokes everything.
    """

    def __init__(
        self,
        session: AsyncSession,
        codec: TokenCodec | None = None,
        cookies: CookieTransport | None = None,
    ):
        self.session = session
        self.codec = codec or get_token_codec()
        self.cookies = cookies or cookie_transport
        self.tokens = TokenStore(session)
        self.credentials = CredentialVerifier(session)

    async def refresh(
        self,
        refresh_token: str | None,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
        now: datetime | None = None,
    ) -> RefreshedSession:
        """Rotate the caller's access token.

        Raises:
            MissingTokenError: no refresh token was presented.
            TokenError: the refresh token failed decoding, is not a refresh
                token, or is not usable in the store.
            IdentityUnavailableError: the owner is gone or disabled.
        """
        if not refresh_token:
            raise MissingTokenError("Refresh token is missing")

        claims = self.codec.decode(refresh_token)
        if claims.kind is not TokenKind.REFRESH:
            raise TokenKindError("Not a refresh token")

        now = now or datetime.now(UTC)
        record = await self.tokens.find_usable(
            refresh_token, TokenKind.REFRESH, now, for_update=True
        )
        if record is None:
            raise TokenRevokedError("Refresh token is no longer valid")

        user = await self.credentials.load(record.user_id)
        if user is None or user.is_locked:
            raise IdentityUnavailableError("User account is unavailable")

        await self.tokens.revoke_all_of_kind(user.id, TokenKind.ACCESS)
        access = self.codec.issue(user.id, TokenKind.ACCESS, email=user.email)
        await self.tokens.put(access, user_agent=user_agent, ip_address=ip_address)

        # Backends without row locks (SQLite) only serialize from the first
        # write on, so a revocation committed since the lookup shows up here.
        if await self.tokens.find_usable(refresh_token, TokenKind.REFRESH, now) is None:
            user_id = str(user.id)
            await self.session.rollback()
            logger.info("Refresh aborted by concurrent revocation", extra={"user_id": user_id})
            raise TokenRevokedError("Refresh token is no longer valid")

        await self.session.commit()

        logger.info("Access token refreshed", extra={"user_id": str(user.id)})
        return RefreshedSession(
            user=user,
            access=access,
            refresh_expires_at=ensure_utc(record.expires_at),
        )

    def deliver(self, response: Response, refreshed: RefreshedSession) -> None:
        """Attach the new access token to the response."""
        self.cookies.set_access(
            response,
            refreshed.access.value,
            refreshed.access.expires_at - refreshed.access.issued_at,
        )

