"""Session revocation: logout, logout-everywhere, password change, account closure."""

import enum
import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from stacknote.models.session_token import TokenKind
from stacknote.services.token_store import TokenStore

logger = logging.getLogger(__name__)


class RevocationReason(str, enum.Enum):
    LOGOUT = "logout"
    LOGOUT_ALL = "logout_all"
    PASSWORD_CHANGE = "password_change"
    DEACTIVATION = "deactivation"
    DELETION = "deletion"


class RevocationService:
    """All triggers end in ``TokenStore.revoke_all``; they differ only in how
    the user is identified.

    ``revoke_user`` does not commit, so callers that also mutate the user
    (password change, deactivation) keep both in one transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.tokens = TokenStore(session)

    async def revoke_user(self, user_id: UUID, reason: RevocationReason) -> int:
        revoked = await self.tokens.revoke_all(user_id)
        logger.info(
            f"Revoked {revoked} tokens ({reason.value})",
            extra={"user_id": str(user_id), "reason": reason.value},
        )
        return revoked

    async def logout(
        self,
        access_token: str | None,
        refresh_token: str | None = None,
        now: datetime | None = None,
    ) -> UUID | None:
        """End the session identified by the presented cookies.

        The owner is resolved from the access token's store record, falling
        back to the refresh token when the access token has already lapsed.
        Returns the owner, or None when neither token is usable, in which case
        nothing changes and the call is still a success.
        """
        now = now or datetime.now(UTC)
        owner: UUID | None = None
        for value, kind in ((access_token, TokenKind.ACCESS), (refresh_token, TokenKind.REFRESH)):
            if not value:
                continue
            record = await self.tokens.find_usable(value, kind, now)
            if record is not None:
                owner = record.user_id
                break

        if owner is None:
            logger.debug("Logout without a usable token")
            return None

        await self.revoke_user(owner, RevocationReason.LOGOUT)
        await self.session.commit()
        return owner

    async def logout_all(self, user_id: UUID) -> int:
        """Revoke every session of an already-authenticated user."""
        revoked = await self.revoke_user(user_id, RevocationReason.LOGOUT_ALL)
        await self.session.commit()
        return revoked
