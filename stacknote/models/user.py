"""User model - the identity that session tokens are issued to."""

import enum
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from stacknote.models.base import BaseModel


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(BaseModel):
    """Registered account.

    Email is the login identifier. An account can authenticate only while it
    is active and not soft-deleted; deactivation and deletion both revoke every
    issued token.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", native_enum=False, length=16),
        default=UserRole.USER,
        nullable=False,
    )

    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    deactivated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_enabled(self) -> bool:
        return self.is_active and not self.is_deleted

    @property
    def is_locked(self) -> bool:
        return not self.is_enabled

    def deactivate(self) -> None:
        self.is_active = False
        self.deactivated_at = datetime.now(UTC)

    def mark_deleted(self) -> None:
        self.is_deleted = True
        self.deleted_at = datetime.now(UTC)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
