"""Tests for session revocation triggers."""

import pytest

from stacknote.models.session_token import TokenKind
from stacknote.services.revocation import RevocationReason, RevocationService
from stacknote.services.session_issuer import SessionIssuer
from stacknote.services.token_codec import TokenCodec
from stacknote.services.token_store import TokenStore
from tests.conftest import TEST_USER_EMAIL, TEST_USER_PASSWORD


async def _login(db_session):
    return await SessionIssuer(db_session).login(TEST_USER_EMAIL, TEST_USER_PASSWORD)


@pytest.mark.asyncio
async def test_logout_by_access_token(db_session, test_user):
    issued = await _login(db_session)
    store = TokenStore(db_session)

    owner = await RevocationService(db_session).logout(issued.access.value)

    assert owner == test_user.id
    assert await store.find_usable(issued.access.value, TokenKind.ACCESS) is None
    assert await store.find_usable(issued.refresh.value, TokenKind.REFRESH) is None


@pytest.mark.asyncio
async def test_logout_falls_back_to_refresh_token(db_session, test_user):
    issued = await _login(db_session)
    store = TokenStore(db_session)
    await store.revoke_all_of_kind(test_user.id, TokenKind.ACCESS)
    await db_session.commit()

    owner = await RevocationService(db_session).logout(issued.access.value, issued.refresh.value)

    assert owner == test_user.id
    assert await store.find_usable(issued.refresh.value, TokenKind.REFRESH) is None


@pytest.mark.asyncio
async def test_logout_without_usable_token_is_noop(db_session, test_user):
    issued = await _login(db_session)
    service = RevocationService(db_session)

    assert await service.logout(None) is None
    assert await service.logout("garbage", "more-garbage") is None

    store = TokenStore(db_session)
    assert await store.find_usable(issued.access.value, TokenKind.ACCESS) is not None


@pytest.mark.asyncio
async def test_logout_twice(db_session, test_user):
    issued = await _login(db_session)
    service = RevocationService(db_session)

    assert await service.logout(issued.access.value) == test_user.id
    assert await service.logout(issued.access.value) is None


@pytest.mark.asyncio
async def test_logout_all_revokes_every_device(db_session, test_user):
    """Tokens issued outside login (several devices) are all revoked."""
    codec = TokenCodec()
    store = TokenStore(db_session)
    devices = [codec.issue(test_user.id, TokenKind.ACCESS) for _ in range(3)]
    for issued in devices:
        await store.put(issued)
    await store.put(codec.issue(test_user.id, TokenKind.REFRESH))
    await db_session.commit()

    revoked = await RevocationService(db_session).logout_all(test_user.id)

    assert revoked == 4
    assert await store.count_usable(test_user.id, TokenKind.ACCESS) == 0
    assert await store.count_usable(test_user.id, TokenKind.REFRESH) == 0


@pytest.mark.asyncio
async def test_revoke_user_does_not_commit(db_session, test_user):
    issued = await _login(db_session)
    service = RevocationService(db_session)

    await service.revoke_user(test_user.id, RevocationReason.DEACTIVATION)
    await db_session.rollback()

    store = TokenStore(db_session)
    assert await store.find_usable(issued.access.value, TokenKind.ACCESS) is not None
