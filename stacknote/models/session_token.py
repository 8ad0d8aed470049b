"""Issued session tokens - the durable allow-list.

Access and refresh tokens live in separate tables with an identical layout.
A row is usable only while it is not revoked and ``expires_at`` lies in the
future; the signed payload's own expiry is never consulted here.
"""

import enum
import uuid
from datetime import datetime
from typing import ClassVar

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from stacknote.models.base import BaseModel


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenRecordMixin:
    """Columns shared by both token tables."""

    token: Mapped[str] = mapped_column(String(1000), nullable=False, unique=True, index=True)

    @declared_attr
    def user_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    # Monotonic: flipped false -> true by revocation, never back
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Captured at issuance for audit; not enforced on validation
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    kind: ClassVar[TokenKind]

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} user_id={self.user_id} "
            f"expires_at={self.expires_at} revoked={self.is_revoked}>"
        )


class AccessToken(TokenRecordMixin, BaseModel):
    """Short-lived credential authorizing ordinary requests."""

    __tablename__ = "access_tokens"

    kind = TokenKind.ACCESS


class RefreshToken(TokenRecordMixin, BaseModel):
    """Long-lived credential used only to obtain a new access token."""

    __tablename__ = "refresh_tokens"

    kind = TokenKind.REFRESH


TOKEN_MODELS: dict[TokenKind, type[AccessToken] | type[RefreshToken]] = {
    TokenKind.ACCESS: AccessToken,
    TokenKind.REFRESH: RefreshToken,
}
