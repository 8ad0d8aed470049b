"""Tests for the session authentication middleware."""

import pytest
from sqlalchemy.exc import OperationalError

from stacknote.core.cookies import ACCESS_TOKEN_COOKIE_NAME
from stacknote.middleware.authentication import PUBLIC_PATHS, is_public_path
from tests.conftest import TEST_USER_EMAIL, TEST_USER_PASSWORD, cleared_cookies, cookie_header


class TestPublicPaths:
    """Tests for public path matching."""

    @pytest.mark.parametrize("path", PUBLIC_PATHS)
    def test_exact_match(self, path):
        assert is_public_path(path) is True

    def test_sub_path_match(self):
        assert is_public_path("/docs/oauth2-redirect") is True
        assert is_public_path("/auth/login/") is True

    @pytest.mark.parametrize(
        "path",
        [
            "/healthz",
            "/auth/loginx",
            "/auth/logout",
            "/auth/logout-all",
            "/auth/me",
            "/api/users/me",
            "/",
        ],
    )
    def test_non_public_paths(self, path):
        assert is_public_path(path) is False


def _broken_session_factory():
    raise OperationalError("SELECT 1", {}, ConnectionRefusedError("database is down"))


@pytest.mark.asyncio
async def test_database_failure_degrades_to_anonymous(async_client, test_user):
    from stacknote.main import app

    response = await async_client.post(
        "/auth/login", json={"email": TEST_USER_EMAIL, "password": TEST_USER_PASSWORD}
    )
    access = response.cookies[ACCESS_TOKEN_COOKIE_NAME]

    app.state.session_factory = _broken_session_factory
    async_client.cookies.clear()
    response = await async_client.get("/auth/me", headers=cookie_header(access=access))

    assert response.status_code == 401
    assert response.json() == {"detail": "Authentication required"}
    # The cookie may still be valid once the database is back
    assert cleared_cookies(response) == set()


@pytest.mark.asyncio
async def test_public_path_ignores_bad_cookie(async_client):
    response = await async_client.get("/auth/status", headers=cookie_header(access="garbage"))

    assert response.status_code == 200
    assert cleared_cookies(response) == set()


@pytest.mark.asyncio
async def test_bad_cookie_cleared_on_protected_path(async_client):
    response = await async_client.get("/auth/me", headers=cookie_header(access="garbage"))

    assert response.status_code == 401
    assert cleared_cookies(response) == {ACCESS_TOKEN_COOKIE_NAME}


@pytest.mark.asyncio
async def test_cors_preflight_is_not_authenticated(async_client):
    response = await async_client.options(
        "/api/users/me",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert response.headers["access-control-allow-credentials"] == "true"
