"""Durable allow-list of issued tokens."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stacknote.models.session_token import (
    TOKEN_MODELS,
    AccessToken,
    RefreshToken,
    TokenKind,
)
from stacknote.services.token_codec import IssuedToken

logger = logging.getLogger(__name__)

TokenRecord = AccessToken | RefreshToken


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps (SQLite drops the offset on round-trip)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class TokenStore:
    """Source of truth for whether an issued token is still usable.

    Writes are flushed but never committed here: the calling service owns the
    transaction, so a revoke followed by an issue lands atomically.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def put(
        self,
        issued: IssuedToken,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenRecord:
        """Record a freshly issued token."""
        model = TOKEN_MODELS[issued.kind]
        record = model(
            token=issued.value,
            user_id=issued.subject,
            issued_at=issued.issued_at,
            expires_at=issued.expires_at,
            is_revoked=False,
            user_agent=user_agent,
            ip_address=ip_address,
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def find_usable(
        self,
        value: str,
        kind: TokenKind,
        now: datetime | None = None,
        *,
        for_update: bool = False,
    ) -> TokenRecord | None:
        """Return the record for ``value`` only if not revoked and not expired.

        With ``for_update`` the row stays locked until the caller's transaction
        ends, so a concurrent ``revoke_all`` waits for it.
        """
        model = TOKEN_MODELS[kind]
        now = now or datetime.now(UTC)
        stmt = select(model).where(
            model.token == value,
            model.is_revoked.is_(False),
            model.expires_at > now,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def revoke_all_of_kind(self, user_id: UUID, kind: TokenKind) -> int:
        """Revoke every live token of one kind for a user with a single UPDATE."""
        model = TOKEN_MODELS[kind]
        result = await self.session.execute(
            update(model)
            .where(model.user_id == user_id, model.is_revoked.is_(False))
            .values(is_revoked=True)
        )
        return result.rowcount or 0

    async def revoke_all(self, user_id: UUID) -> int:
        """Revoke every access and refresh token for a user.

        Both bulk updates run in the caller's transaction, so concurrent
        readers see either none or all of them revoked once it commits.

        Refresh tokens go first: a refresh in flight holds its refresh row
        locked, so the access update only runs after that refresh commits and
        also catches the access token it minted.
        """
        revoked = 0
        for kind in (TokenKind.REFRESH, TokenKind.ACCESS):
            revoked += await self.revoke_all_of_kind(user_id, kind)
        await self.session.flush()
        return revoked

    async def count_usable(
        self, user_id: UUID, kind: TokenKind, now: datetime | None = None
    ) -> int:
        """Count a user's live tokens of one kind."""
        model = TOKEN_MODELS[kind]
        now = now or datetime.now(UTC)
        result = await self.session.execute(
            select(func.count(model.id)).where(
                model.user_id == user_id,
                model.is_revoked.is_(False),
                model.expires_at > now,
            )
        )
        return result.scalar() or 0
