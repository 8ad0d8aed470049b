"""Shared API dependencies."""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from stacknote.core import get_db
from stacknote.services.request_authenticator import Principal
from stacknote.services.user import UserService


def get_optional_principal(request: Request) -> Principal | None:
    """Principal attached by SessionAuthMiddleware, or None for anonymous requests."""
    return getattr(request.state, "principal", None)


def get_current_user(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    """Require an authenticated principal."""
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return principal


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Dependency to get user service."""
    return UserService(db)
