"""Credential verification against the user store."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stacknote.models.user import User
from stacknote.services.auth import (
    InvalidCredentialsError,
    burn_password_check,
    verify_password,
)

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password"


class CredentialVerifier:
    """Resolve login credentials and token subjects to users."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def load(self, user_id: UUID) -> User | None:
        """Load a user by id, or None if it does not exist."""
        return await self.session.get(User, user_id)

    async def verify(self, email: str, password: str) -> User:
        """Authenticate an email/password pair.

        Raises InvalidCredentialsError with the same message for an unknown
        email, a disabled account and a wrong password, to prevent account
        enumeration.
        """
        user = await self.get_user_by_email(email)

        if user is None:
            burn_password_check(password)
            raise InvalidCredentialsError(_INVALID_CREDENTIALS)

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError(_INVALID_CREDENTIALS)

        if not user.is_enabled:
            logger.info(f"Login refused for disabled account: {user.id}")
            raise InvalidCredentialsError(_INVALID_CREDENTIALS)

        user.last_login_at = datetime.now(UTC)
        return user
