"""Session cookie authentication middleware.

Runs ahead of every route except the public allow-list. It never rejects a
request itself: a valid access cookie attaches a ``Principal`` to
``request.state.principal``; anything else leaves the request anonymous
(``None``) and, when a bad cookie was presented, expires it on the response.
Route dependencies decide whether anonymous access is allowed.
"""

import logging

from fastapi import Request, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from stacknote.core.cookies import CookieTransport, cookie_transport
from stacknote.services.request_authenticator import (
    AuthOutcome,
    Rejection,
    RequestAuthenticator,
)

logger = logging.getLogger(__name__)

# Paths that skip token validation (exact or segment-boundary match).
# Login and refresh read their own cookies.
PUBLIC_PATHS = [
    "/auth/login",
    "/auth/refresh",
    "/auth/register",
    "/auth/status",
    "/api/users/check-email",
    "/api/users/check-username",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
]


def is_public_path(path: str) -> bool:
    """Check a path against PUBLIC_PATHS on segment boundaries.

    ``/healthz`` must not match ``/health``.
    """
    for public in PUBLIC_PATHS:
        if path == public or path.startswith(public + "/"):
            return True
    return False


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """Resolve the access cookie to a request principal.

    Database sessions come from ``app.state.session_factory`` and are closed
    before the route runs.
    """

    def __init__(self, app, cookies: CookieTransport | None = None):
        super().__init__(app)
        self.cookies = cookies or cookie_transport

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.principal = None

        # CORS preflight is answered by CORSMiddleware
        if request.method == "OPTIONS" or is_public_path(request.url.path):
            return await call_next(request)

        outcome = await self._authenticate(request)
        request.state.principal = outcome.principal

        if outcome.rejection is not None and outcome.rejection is not Rejection.MISSING:
            logger.debug(
                f"Anonymous request after rejected access token: {request.method} {request.url.path}",
                extra={"reason": outcome.rejection.value},
            )

        response = await call_next(request)

        if outcome.should_clear_cookie:
            self.cookies.clear_access(response)
        return response

    async def _authenticate(self, request: Request) -> AuthOutcome:
        token = self.cookies.get_access(request)
        if token is None:
            return AuthOutcome(rejection=Rejection.MISSING)

        session_factory = request.app.state.session_factory
        try:
            async with session_factory() as session:
                return await RequestAuthenticator(session).authenticate(token)
        except SQLAlchemyError:
            # Degrade to anonymous and leave the cookie in place
            logger.exception(f"Token validation failed for {request.method} {request.url.path}")
            return AuthOutcome()
