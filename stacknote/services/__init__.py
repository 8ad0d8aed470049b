# StackNote Services
from stacknote.services.credentials import CredentialVerifier
from stacknote.services.request_authenticator import (
    AuthOutcome,
    Principal,
    Rejection,
    RequestAuthenticator,
)
from stacknote.services.revocation import RevocationReason, RevocationService
from stacknote.services.session_issuer import IssuedSession, SessionIssuer
from stacknote.services.token_codec import IssuedToken, TokenClaims, TokenCodec, get_token_codec
from stacknote.services.token_refresh import RefreshedSession, RefreshOrchestrator
from stacknote.services.token_store import TokenStore
from stacknote.services.user import UserService

__all__ = [
    "AuthOutcome",
    "CredentialVerifier",
    "IssuedSession",
    "IssuedToken",
    "Principal",
    "RefreshOrchestrator",
    "RefreshedSession",
    "Rejection",
    "RequestAuthenticator",
    "RevocationReason",
    "RevocationService",
    "SessionIssuer",
    "TokenClaims",
    "TokenCodec",
    "TokenStore",
    "UserService",
    "get_token_codec",
]
