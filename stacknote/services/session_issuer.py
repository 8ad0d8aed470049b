"""Login: verify credentials and start the user's single live session."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from stacknote.core.cookies import CookieTransport, cookie_transport
from stacknote.models.session_token import TokenKind
from stacknote.models.user import User
from stacknote.services.credentials import CredentialVerifier
from stacknote.services.token_codec import IssuedToken, TokenCodec, get_token_codec
from stacknote.services.token_store import TokenStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    """Token pair handed to the client after login."""

    user: User
    access: IssuedToken
    refresh: IssuedToken


class SessionIssuer:
    """Orchestrates login.

    Order matters: every earlier token of the user is revoked before the new
    pair is written, and both happen in one commit, so two sessions for the
    same user never coexist. Nothing is written when verification fails.
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
        self.credentials = CredentialVerifier(session)
        self.tokens = TokenStore(session)

    async def login(
        self,
        email: str,
        password: str,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> IssuedSession:
        """Authenticate and issue a fresh access/refresh pair.

        Raises InvalidCredentialsError on any credential mismatch.
        """
        user = await self.credentials.verify(email, password)

        revoked = await self.tokens.revoke_all(user.id)
        if revoked:
            logger.info(
                f"Revoked {revoked} earlier tokens at login",
                extra={"user_id": str(user.id), "reason": "login"},
            )

        access = self.codec.issue(user.id, TokenKind.ACCESS, email=user.email)
        refresh = self.codec.issue(user.id, TokenKind.REFRESH, email=user.email)
        await self.tokens.put(access, user_agent=user_agent, ip_address=ip_address)
        await self.tokens.put(refresh, user_agent=user_agent, ip_address=ip_address)
        await self.session.commit()

        logger.info(f"User logged in: {user.email}", extra={"user_id": str(user.id)})
        return IssuedSession(user=user, access=access, refresh=refresh)

    def deliver(self, response: Response, issued: IssuedSession) -> None:
        """Attach both tokens to the response as cookies."""
        self.cookies.set_access(
            response, issued.access.value, issued.access.expires_at - issued.access.issued_at
        )
        self.cookies.set_refresh(
            response, issued.refresh.value, issued.refresh.expires_at - issued.refresh.issued_at
        )
