"""Pydantic schemas for account management API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stacknote.models.user import UserRole
from stacknote.schemas.auth import check_password_policy


class ProfileUpdateRequest(BaseModel):
    """Request for profile update."""

    username: str | None = Field(
        None,
        min_length=2,
        max_length=30,
        pattern=r"^[a-zA-Z0-9_.-]+$",
    )


class PasswordChangeRequest(BaseModel):
    """Request for password change.

    Confirmation and current-password checks happen in the service so they
    surface as 400 rather than a validation error.
    """

    current_password: str = Field(..., min_length=1)
    new_password: str
    confirm_new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return check_password_policy(v)


class UserSummaryResponse(BaseModel):
    """Another user's profile as seen by a signed-in user. Omits the email."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    role: UserRole
    created_at: datetime


class AvailabilityResponse(BaseModel):
    available: bool
