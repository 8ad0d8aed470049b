# StackNote Models
from stacknote.models.base import BaseModel
from stacknote.models.session_token import (
    TOKEN_MODELS,
    AccessToken,
    RefreshToken,
    TokenKind,
    TokenRecordMixin,
)
from stacknote.models.user import User, UserRole

__all__ = [
    "AccessToken",
    "BaseModel",
    "RefreshToken",
    "TOKEN_MODELS",
    "TokenKind",
    "TokenRecordMixin",
    "User",
    "UserRole",
]
