"""Cookie transport for session tokens.

Both tokens travel as HttpOnly cookies scoped to the whole application, with
independent lifetimes. No validation happens here.
"""

import logging
from datetime import timedelta

from starlette.requests import HTTPConnection
from starlette.responses import Response

from stacknote.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE_NAME = "stacknote_access_token"
REFRESH_TOKEN_COOKIE_NAME = "stacknote_refresh_token"


class CookieTransport:
    """Read, write and clear the access/refresh token cookies."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or default_settings

    @property
    def _domain(self) -> str | None:
        # Browsers reject Domain=localhost; omit it so the cookie is host-only
        domain = self._settings.cookie_domain
        return None if domain == "localhost" else domain

    def _set(self, response: Response, name: str, value: str, ttl: timedelta) -> None:
        response.set_cookie(
            key=name,
            value=value,
            max_age=int(ttl.total_seconds()),
            path="/",
            domain=self._domain,
            secure=self._settings.cookie_secure,
            httponly=True,
            samesite=self._settings.cookie_samesite,
        )

    def _delete(self, response: Response, name: str) -> None:
        response.delete_cookie(
            key=name,
            path="/",
            domain=self._domain,
            secure=self._settings.cookie_secure,
            httponly=True,
            samesite=self._settings.cookie_samesite,
        )

    def set_access(self, response: Response, token: str, ttl: timedelta) -> None:
        self._set(response, ACCESS_TOKEN_COOKIE_NAME, token, ttl)
        logger.debug("Access token cookie set")

    def set_refresh(self, response: Response, token: str, ttl: timedelta) -> None:
        self._set(response, REFRESH_TOKEN_COOKIE_NAME, token, ttl)
        logger.debug("Refresh token cookie set")

    def get_access(self, request: HTTPConnection) -> str | None:
        return request.cookies.get(ACCESS_TOKEN_COOKIE_NAME) or None

    def get_refresh(self, request: HTTPConnection) -> str | None:
        return request.cookies.get(REFRESH_TOKEN_COOKIE_NAME) or None

    def clear_access(self, response: Response) -> None:
        self._delete(response, ACCESS_TOKEN_COOKIE_NAME)
        logger.debug("Access token cookie cleared")

    def clear_all(self, response: Response) -> None:
        """Expire both cookies. Safe to call when neither was sent."""
        self._delete(response, ACCESS_TOKEN_COOKIE_NAME)
        self._delete(response, REFRESH_TOKEN_COOKIE_NAME)
        logger.debug("All auth cookies cleared")

    def has_auth_cookies(self, request: HTTPConnection) -> bool:
        return self.get_access(request) is not None or self.get_refresh(request) is not None


cookie_transport = CookieTransport()
