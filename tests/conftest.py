"""Pytest configuration and fixtures for backend tests.

Database Handling:
- Uses TEST_DATABASE_URL if set (e.g. a PostgreSQL test database)
- Otherwise each test gets a throwaway SQLite file database under tmp_path

Tests commit rather than roll back: the authentication middleware opens its
own sessions, so data written by a test must be visible to other connections.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set test environment variables before importing app modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-signing-key-" + "0" * 64
os.environ["COOKIE_DOMAIN"] = "localhost"
os.environ["COOKIE_SECURE"] = "false"
# Cheap hashing keeps the suite fast
os.environ["PASSWORD_HASH_TIME_COST"] = "1"
os.environ["PASSWORD_HASH_MEMORY_COST"] = "1024"

# Test user credentials (satisfy the registration password policy)
TEST_USER_EMAIL = "alice@stacknote.dev"
TEST_USER_USERNAME = "alice"
TEST_USER_PASSWORD = "Secret123!"


# --- Login Rate Limiter Reset Fixture ---


def _reset_login_rate_limiter_state():
    """Clear failed-login bookkeeping so attempts do not leak between tests."""
    from stacknote.api.auth import _login_attempts

    _login_attempts.clear()


@pytest.fixture(autouse=True)
def reset_login_rate_limiter():
    _reset_login_rate_limiter_state()
    yield
    _reset_login_rate_limiter_state()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a database engine with all tables for one test."""
    import stacknote.models  # noqa: F401
    from stacknote.core.database import Base

    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, poolclass=NullPool, echo=False)

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client bound to the test database."""
    from stacknote.core.database import async_session_maker, get_db
    from stacknote.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()
    app.state.session_factory = async_session_maker


# --- Test Factories ---


@pytest.fixture
def user_factory(db_session):
    """Factory for creating committed test User objects."""
    from stacknote.models.user import User
    from stacknote.services.auth import hash_password

    async def _create_user(
        email: str = TEST_USER_EMAIL,
        username: str = TEST_USER_USERNAME,
        password: str = TEST_USER_PASSWORD,
        **kwargs,
    ) -> User:
        user = User(
            email=email,
            username=username,
            password_hash=hash_password(password),
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest_asyncio.fixture
async def test_user(user_factory):
    """An enabled user with TEST_USER_PASSWORD."""
    return await user_factory()


# --- Cookie Helpers ---


def cookie_header(access: str | None = None, refresh: str | None = None) -> dict[str, str]:
    """Build an explicit Cookie header carrying the given tokens."""
    from stacknote.core.cookies import ACCESS_TOKEN_COOKIE_NAME, REFRESH_TOKEN_COOKIE_NAME

    parts = []
    if access is not None:
        parts.append(f"{ACCESS_TOKEN_COOKIE_NAME}={access}")
    if refresh is not None:
        parts.append(f"{REFRESH_TOKEN_COOKIE_NAME}={refresh}")
    return {"Cookie": "; ".join(parts)} if parts else {}


def cleared_cookies(response) -> set[str]:
    """Names of cookies the response expires.

    httpx drops Max-Age=0 cookies from ``response.cookies``, so the raw
    Set-Cookie headers are inspected instead.
    """
    names = set()
    for header in response.headers.get_list("set-cookie"):
        if "max-age=0" in header.lower():
            names.add(header.split("=", 1)[0].strip())
    return names


def tamper(token: str) -> str:
    """Alter the first character of the signature segment."""
    header, payload, signature = token.split(".")
    first = "A" if signature[0] != "A" else "B"
    return ".".join([header, payload, first + signature[1:]])
