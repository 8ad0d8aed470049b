"""Tests for per-request access token validation."""

from datetime import UTC, datetime, timedelta

import pytest

from stacknote.models.session_token import TokenKind
from stacknote.services.request_authenticator import Rejection, RequestAuthenticator
from stacknote.services.session_issuer import SessionIssuer
from stacknote.services.token_codec import TokenCodec
from stacknote.services.token_store import TokenStore
from tests.conftest import TEST_USER_EMAIL, TEST_USER_PASSWORD, tamper


async def _login(db_session):
    return await SessionIssuer(db_session).login(TEST_USER_EMAIL, TEST_USER_PASSWORD)


@pytest.mark.asyncio
async def test_valid_access_token_yields_principal(db_session, test_user):
    issued = await _login(db_session)

    outcome = await RequestAuthenticator(db_session).authenticate(issued.access.value)

    assert outcome.authenticated
    assert outcome.principal.user_id == test_user.id
    assert outcome.principal.email == test_user.email
    assert outcome.should_clear_cookie is False


@pytest.mark.asyncio
async def test_missing_token_does_not_clear(db_session):
    outcome = await RequestAuthenticator(db_session).authenticate(None)

    assert outcome.rejection is Rejection.MISSING
    assert not outcome.authenticated
    assert outcome.should_clear_cookie is False


@pytest.mark.asyncio
async def test_tampered_token_is_malformed(db_session, test_user):
    issued = await _login(db_session)

    outcome = await RequestAuthenticator(db_session).authenticate(tamper(issued.access.value))

    assert outcome.rejection is Rejection.MALFORMED
    assert outcome.should_clear_cookie is True


@pytest.mark.asyncio
async def test_expired_payload(db_session, test_user):
    codec = TokenCodec()
    past = datetime.now(UTC) - timedelta(hours=2)
    issued = codec.issue(test_user.id, TokenKind.ACCESS, now=past)
    await TokenStore(db_session).put(issued)
    await db_session.commit()

    outcome = await RequestAuthenticator(db_session, codec).authenticate(issued.value)

    assert outcome.rejection is Rejection.EXPIRED
    assert outcome.should_clear_cookie is True


@pytest.mark.asyncio
async def test_refresh_token_in_access_slot_is_rejected(db_session, test_user):
    issued = await _login(db_session)

    outcome = await RequestAuthenticator(db_session).authenticate(issued.refresh.value)

    assert outcome.rejection is Rejection.WRONG_KIND
    assert not outcome.authenticated


@pytest.mark.asyncio
async def test_signed_but_unstored_token_is_rejected(db_session, test_user):
    """A valid signature alone never authenticates."""
    issued = TokenCodec().issue(test_user.id, TokenKind.ACCESS)

    outcome = await RequestAuthenticator(db_session).authenticate(issued.value)

    assert outcome.rejection is Rejection.REVOKED


@pytest.mark.asyncio
async def test_revoked_token_is_rejected(db_session, test_user):
    issued = await _login(db_session)
    await TokenStore(db_session).revoke_all(test_user.id)
    await db_session.commit()

    outcome = await RequestAuthenticator(db_session).authenticate(issued.access.value)

    assert outcome.rejection is Rejection.REVOKED
    assert outcome.should_clear_cookie is True


@pytest.mark.asyncio
async def test_store_expiry_beats_payload(db_session, test_user):
    issued = await _login(db_session)
    later = issued.access.expires_at + timedelta(seconds=1)

    outcome = await RequestAuthenticator(db_session).authenticate(issued.access.value, now=later)

    # Payload is still valid by the wall clock; the store says otherwise
    assert outcome.rejection is Rejection.REVOKED


@pytest.mark.asyncio
async def test_disabled_identity_is_rejected(db_session, test_user):
    issued = await _login(db_session)
    test_user.is_active = False
    await db_session.commit()

    outcome = await RequestAuthenticator(db_session).authenticate(issued.access.value)

    assert outcome.rejection is Rejection.IDENTITY_UNAVAILABLE
    assert outcome.should_clear_cookie is True


@pytest.mark.asyncio
async def test_deleted_identity_is_rejected(db_session, test_user):
    issued = await _login(db_session)
    test_user.mark_deleted()
    await db_session.commit()

    outcome = await RequestAuthenticator(db_session).authenticate(issued.access.value)

    assert outcome.rejection is Rejection.IDENTITY_UNAVAILABLE
