"""Account management API endpoints.

Password change, deactivation and deletion revoke every session of the user
and clear the caller's cookies. The availability checks are public; looking
up other users requires a signed-in caller.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from stacknote.api.deps import get_current_user, get_user_service
from stacknote.core.cookies import cookie_transport
from stacknote.schemas.auth import MessageResponse, UserResponse
from stacknote.schemas.user import (
    AvailabilityResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    UserSummaryResponse,
)
from stacknote.services.auth import (
    DuplicateAccountError,
    InvalidPasswordError,
    UserNotFoundError,
)
from stacknote.services.request_authenticator import Principal
from stacknote.services.user import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _not_found(e: UserNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/me", response_model=UserResponse)
async def get_profile(
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Get the current user's profile."""
    try:
        user = await user_service.get_profile(principal.user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Update the current user's profile."""
    try:
        user = await user_service.update_profile(principal.user_id, request.username)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    except DuplicateAccountError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return UserResponse.model_validate(user)


@router.get("/check-email", response_model=AvailabilityResponse)
async def check_email_availability(
    email: str = Query(..., min_length=3, max_length=100),
    user_service: UserService = Depends(get_user_service),
) -> AvailabilityResponse:
    """Report whether an email address can still be registered. Public."""
    return AvailabilityResponse(available=await user_service.is_email_available(email))


@router.get("/check-username", response_model=AvailabilityResponse)
async def check_username_availability(
    username: str = Query(..., min_length=1, max_length=50),
    user_service: UserService = Depends(get_user_service),
) -> AvailabilityResponse:
    """Report whether a username is still free. Public."""
    return AvailabilityResponse(available=await user_service.is_username_available(username))


@router.post("/verify-email", response_model=UserResponse)
async def verify_email(
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Mark the current user's email address as verified."""
    try:
        user = await user_service.verify_email(principal.user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    return UserResponse.model_validate(user)


@router.put("/password", response_model=MessageResponse)
async def change_password(
    request: PasswordChangeRequest,
    response: Response,
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Change the current user's password.

    Every session is revoked; the user must log in again.
    """
    try:
        await user_service.change_password(
            principal.user_id,
            request.current_password,
            request.new_password,
            request.confirm_new_password,
        )
    except UserNotFoundError as e:
        raise _not_found(e) from e
    except InvalidPasswordError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    cookie_transport.clear_all(response)
    return MessageResponse(message="Password changed successfully. Please log in again.")


@router.post("/deactivate", response_model=MessageResponse)
async def deactivate_account(
    response: Response,
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Deactivate the current user's account."""
    try:
        await user_service.deactivate(principal.user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e

    cookie_transport.clear_all(response)
    return MessageResponse(message="Account deactivated")


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    response: Response,
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Delete the current user's account."""
    try:
        await user_service.delete_account(principal.user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e

    cookie_transport.clear_all(response)
    return MessageResponse(message="Account deleted")


@router.get("/username/{username}", response_model=UserSummaryResponse)
async def get_user_by_username(
    username: str,
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserSummaryResponse:
    """Look up another user by username."""
    try:
        user = await user_service.get_by_username(username)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    return UserSummaryResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserSummaryResponse)
async def get_user(
    user_id: UUID,
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserSummaryResponse:
    """Look up another user by id."""
    try:
        user = await user_service.get_profile(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    return UserSummaryResponse.model_validate(user)
