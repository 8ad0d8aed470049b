# StackNote Pydantic Schemas
from stacknote.schemas.auth import (
    AuthStatusResponse,
    AuthTokenResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from stacknote.schemas.user import (
    AvailabilityResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    UserSummaryResponse,
)

__all__ = [
    "AuthStatusResponse",
    "AuthTokenResponse",
    "AvailabilityResponse",
    "LoginRequest",
    "MessageResponse",
    "PasswordChangeRequest",
    "ProfileUpdateRequest",
    "RegisterRequest",
    "UserResponse",
    "UserSummaryResponse",
]
