"""Pydantic schemas for authentication API."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from stacknote.models.user import UserRole

PASSWORD_SPECIAL_CHARS = "@$!%*?&"
PASSWORD_POLICY = re.compile(
    rf"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[{re.escape(PASSWORD_SPECIAL_CHARS)}])"
    rf"[A-Za-z\d{re.escape(PASSWORD_SPECIAL_CHARS)}]{{8,20}}$"
)
PASSWORD_POLICY_MESSAGE = (
    "Password must be 8-20 characters and include an uppercase letter, "
    f"a lowercase letter, a digit and one of {PASSWORD_SPECIAL_CHARS}"
)


def check_password_policy(password: str) -> str:
    """Raise ValueError unless the password satisfies the account password policy."""
    if not PASSWORD_POLICY.match(password):
        raise ValueError(PASSWORD_POLICY_MESSAGE)
    return password


class AuthStatusResponse(BaseModel):
    """Response for auth status check."""

    has_auth_cookies: bool = Field(
        description="True if the request carried an access or refresh cookie"
    )


class RegisterRequest(BaseModel):
    """Request for account registration."""

    email: EmailStr
    username: str = Field(
        ...,
        min_length=2,
        max_length=30,
        pattern=r"^[a-zA-Z0-9_.-]+$",
        description="Display name (2-30 chars, letters, digits, underscore, dot, hyphen)",
    )
    password: str = Field(..., description=PASSWORD_POLICY_MESSAGE)
    confirm_password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_policy(v)


class LoginRequest(BaseModel):
    """Request for login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class UserResponse(BaseModel):
    """Public user fields."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    role: UserRole
    is_email_verified: bool
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime


class AuthTokenResponse(BaseModel):
    """Login/refresh result. Token values travel only as cookies."""

    token_type: str = "Bearer"
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime
    user: UserResponse
