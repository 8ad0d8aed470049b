"""StackNote API Router - aggregates all /api routes."""

from fastapi import APIRouter

from stacknote.api import users

# Main API router - all routes will be prefixed with /api
api_router = APIRouter(prefix="/api")

# Include routers
api_router.include_router(users.router)
