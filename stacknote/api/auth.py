"""Authentication API endpoints.

Token values are only ever transported as HttpOnly cookies; response bodies
carry expiry metadata and public user fields.
"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from stacknote.api.deps import get_current_user, get_optional_principal, get_user_service
from stacknote.core import get_db, settings
from stacknote.core.cookies import cookie_transport
from stacknote.core.request_utils import get_client_ip, get_user_agent
from stacknote.schemas.auth import (
    AuthStatusResponse,
    AuthTokenResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from stacknote.services.auth import (
    DuplicateAccountError,
    IdentityUnavailableError,
    InvalidCredentialsError,
    InvalidPasswordError,
    MissingTokenError,
    TokenError,
    UserNotFoundError,
)
from stacknote.services.request_authenticator import Principal
from stacknote.services.revocation import RevocationService
from stacknote.services.session_issuer import SessionIssuer
from stacknote.services.token_refresh import RefreshOrchestrator
from stacknote.services.user import UserService

logger = logging.getLogger(__name__)

# Rate limiting for failed login attempts, per client IP
_login_attempts: dict[str, list[float]] = {}


def _check_login_rate_limit(client_ip: str) -> None:
    """Check if a client IP has exceeded the login attempt rate limit."""
    now = time.monotonic()
    window = settings.login_rate_limit_window_seconds
    attempts = [t for t in _login_attempts.get(client_ip, ()) if now - t < window]
    # Drop idle IPs so the map only holds clients with recent failures
    if attempts:
        _login_attempts[client_ip] = attempts
    else:
        _login_attempts.pop(client_ip, None)
    if len(attempts) >= settings.login_rate_limit_attempts:
        logger.warning("Login rate limit exceeded for %s", client_ip)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Please try again later.",
        )


def _record_login_attempt(client_ip: str) -> None:
    """Record a failed login attempt for rate limiting."""
    _login_attempts.setdefault(client_ip, []).append(time.monotonic())


router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/status", response_model=AuthStatusResponse)
async def get_auth_status(request: Request) -> AuthStatusResponse:
    """Report whether the request carried any auth cookie.

    Presence only; the cookies are not validated. This endpoint does not
    require authentication.
    """
    return AuthStatusResponse(has_auth_cookies=cookie_transport.has_auth_cookies(request))


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Create a new account. Does not log the user in."""
    try:
        user = await user_service.register(
            email=request.email,
            username=request.username,
            password=request.password,
            confirm_password=request.confirm_password,
        )
    except DuplicateAccountError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except InvalidPasswordError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return UserResponse.model_validate(user)


@router.post("/login", response_model=AuthTokenResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> AuthTokenResponse:
    """Authenticate and start a session.

    Sets the access and refresh cookies. Any earlier session of the same user
    is revoked. Rate limited per client IP on failed attempts.
    """
    client_ip = get_client_ip(http_request) or "unknown"
    _check_login_rate_limit(client_ip)

    issuer = SessionIssuer(db)
    try:
        issued = await issuer.login(
            request.email,
            request.password,
            user_agent=get_user_agent(http_request),
            ip_address=get_client_ip(http_request),
        )
    except InvalidCredentialsError as e:
        _record_login_attempt(client_ip)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        ) from e

    issuer.deliver(response, issued)
    return AuthTokenResponse(
        access_token_expires_at=issued.access.expires_at,
        refresh_token_expires_at=issued.refresh.expires_at,
        user=UserResponse.model_validate(issued.user),
    )


@router.post(
    "/refresh",
    response_model=AuthTokenResponse,
    responses={status.HTTP_401_UNAUTHORIZED: {"description": "Refresh token missing or unusable"}},
)
async def refresh_access_token(
    http_request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> AuthTokenResponse | JSONResponse:
    """Mint a new access token from the refresh cookie.

    The refresh token itself is not rotated. On failure every auth cookie is
    cleared and the client must log in again.
    """
    orchestrator = RefreshOrchestrator(db)
    try:
        refreshed = await orchestrator.refresh(
            cookie_transport.get_refresh(http_request),
            user_agent=get_user_agent(http_request),
            ip_address=get_client_ip(http_request),
        )
    except MissingTokenError:
        return _refresh_rejected("Refresh token is missing")
    except (TokenError, IdentityUnavailableError) as e:
        logger.info(f"Refresh rejected: {type(e).__name__}")
        return _refresh_rejected("Invalid refresh token")

    orchestrator.deliver(response, refreshed)
    return AuthTokenResponse(
        access_token_expires_at=refreshed.access.expires_at,
        refresh_token_expires_at=refreshed.refresh_expires_at,
        user=UserResponse.model_validate(refreshed.user),
    )


def _refresh_rejected(detail: str) -> JSONResponse:
    # Raised HTTPExceptions drop headers set on the injected Response
    rejected = JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": detail},
    )
    cookie_transport.clear_all(rejected)
    return rejected


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """End the caller's session.

    Revokes every token of the user owning the presented cookies and clears
    both cookies. Idempotent: succeeds even when no usable cookie was sent.
    """
    owner = await RevocationService(db).logout(
        cookie_transport.get_access(request),
        cookie_transport.get_refresh(request),
    )
    cookie_transport.clear_all(response)
    if owner is not None:
        logger.info("User logged out", extra={"user_id": str(owner)})
    return MessageResponse(message="Logged out successfully")


@router.post("/logout-all", response_model=MessageResponse)
async def logout_all_devices(
    request: Request,
    response: Response,
    principal: Principal | None = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Revoke every session of the current user, on every device."""
    if cookie_transport.get_access(request) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Access token cookie is missing",
        )
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    revoked = await RevocationService(db).logout_all(principal.user_id)
    cookie_transport.clear_all(response)
    return MessageResponse(message=f"Logged out from all devices ({revoked} tokens revoked)")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    principal: Principal = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Get the current user's information."""
    try:
        user = await user_service.get_profile(principal.user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return UserResponse.model_validate(user)

