"""Middleware module for StackNote backend."""

from stacknote.middleware.authentication import (
    PUBLIC_PATHS,
    SessionAuthMiddleware,
    is_public_path,
)

__all__ = [
    "PUBLIC_PATHS",
    "SessionAuthMiddleware",
    "is_public_path",
]
