"""Account operations that interact with the session lifecycle."""

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stacknote.models.user import User, UserRole
from stacknote.services.auth import (
    DuplicateAccountError,
    InvalidPasswordError,
    UserNotFoundError,
    hash_password,
    verify_password,
)
from stacknote.services.revocation import RevocationReason, RevocationService

logger = logging.getLogger(__name__)


class UserService:
    """Service for registration, lookups and account state changes."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.revocation = RevocationService(session)

    async def get_profile(self, user_id: UUID) -> User:
        user = await self.session.get(User, user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError("User not found")
        return user

    async def get_by_username(self, username: str) -> User:
        result = await self.session.execute(
            select(User).where(User.username == username, User.is_deleted.is_(False))
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError("User not found")
        return user

    async def is_email_available(self, email: str) -> bool:
        """Whether ``email`` can still be registered.

        Soft-deleted accounts keep their email, so it stays taken.
        """
        result = await self.session.execute(
            select(func.count(User.id)).where(User.email == email.lower())
        )
        return not result.scalar()

    async def is_username_available(self, username: str) -> bool:
        result = await self.session.execute(
            select(func.count(User.id)).where(User.username == username)
        )
        return not result.scalar()

    async def _ensure_available(self, email: str | None, username: str | None) -> None:
        result = await self.session.execute(
            select(User.email, User.username).where(
                or_(User.email == email, User.username == username)
            )
        )
        for existing_email, existing_username in result.all():
            if email is not None and existing_email == email:
                raise DuplicateAccountError("Email is already in use")
            if existing_username == username:
                raise DuplicateAccountError("Username is already in use")

    async def _commit_account(self, user: User) -> None:
        """Commit account changes, mapping a lost uniqueness race to a duplicate."""
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateAccountError("Email or username is already in use") from e
        await self.session.refresh(user)

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        confirm_password: str,
    ) -> User:
        """Create a new enabled account."""
        if password != confirm_password:
            raise InvalidPasswordError("Passwords do not match")

        email = email.lower()
        await self._ensure_available(email, username)

        user = User(
            email=email,
            username=username,
            password_hash=hash_password(password),
            role=UserRole.USER,
            is_email_verified=False,
            is_active=True,
        )
        self.session.add(user)
        await self._commit_account(user)

        logger.info(f"Registered user: {user.email}", extra={"user_id": str(user.id)})
        return user

    async def update_profile(self, user_id: UUID, username: str | None) -> User:
        user = await self.get_profile(user_id)
        if username and username != user.username:
            await self._ensure_available(None, username)
            user.username = username
        await self._commit_account(user)
        return user

    async def verify_email(self, user_id: UUID) -> User:
        """Mark the user's email address as verified."""
        user = await self.get_profile(user_id)
        if not user.is_email_verified:
            user.is_email_verified = True
            await self.session.commit()
            await self.session.refresh(user)
            logger.info(f"Email verified: {user.email}", extra={"user_id": str(user.id)})
        return user

    async def change_password(
        self,
        user_id: UUID,
        current_password: str,
        new_password: str,
        confirm_new_password: str,
    ) -> None:
        """Change a user's password and revoke every issued token."""
        user = await self.get_profile(user_id)

        if new_password != confirm_new_password:
            raise InvalidPasswordError("New passwords do not match")
        if not verify_password(current_password, user.password_hash):
            raise InvalidPasswordError("Current password is incorrect")
        if verify_password(new_password, user.password_hash):
            raise InvalidPasswordError("New password must differ from the current password")

        user.password_hash = hash_password(new_password)
        await self.revocation.revoke_user(user.id, RevocationReason.PASSWORD_CHANGE)
        await self.session.commit()

        logger.info(f"Password changed for user: {user.email}", extra={"user_id": str(user.id)})

    async def deactivate(self, user_id: UUID) -> None:
        user = await self.get_profile(user_id)
        user.deactivate()
        await self.revocation.revoke_user(user.id, RevocationReason.DEACTIVATION)
        await self.session.commit()
        logger.info(f"Deactivated user: {user.email}", extra={"user_id": str(user.id)})

    async def delete_account(self, user_id: UUID) -> None:
        """Soft-delete the account."""
        user = await self.get_profile(user_id)
        user.mark_deleted()
        await self.revocation.revoke_user(user.id, RevocationReason.DELETION)
        await self.session.commit()
        logger.info(f"Deleted user: {user.email}", extra={"user_id": str(user.id)})
