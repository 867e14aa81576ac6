"""Authentication endpoints."""

from fastapi import APIRouter, Request, status

from healthmate.dependencies import (
    CacheManagerDep,
    CurrentUser,
    DatabaseSession,
    RateLimiterDep,
    client_ip,
)
from healthmate.schemas.auth import (
    LoginRequest,
    SessionResponse,
    SignupRequest,
    Token,
    TokenRefresh,
)
from healthmate.schemas.profiles import ProfileResponse
from healthmate.services.auth_service import AuthService

router = APIRouter()


def _session(profile: dict, tokens: Token) -> SessionResponse:
    return SessionResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        profile=ProfileResponse.model_validate(profile),
    )


@router.post(
    "/signup",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def signup(
    data: SignupRequest,
    request: Request,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> SessionResponse:
    """
    Register a patient or doctor account and return a session.

    Admin accounts are created by other admins only.
    """
    auth_service = AuthService(cache_manager)
    profile, tokens = await auth_service.signup(db, data, ip=client_ip(request))
    return _session(profile, tokens)


@router.post(
    "/login",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Email and password login",
)
async def login(
    data: LoginRequest,
    request: Request,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    rate_limiter: RateLimiterDep,
) -> SessionResponse:
    """
    Verify credentials and return access and refresh tokens with the profile.

    Raises:
        401 on wrong credentials, 403 for deactivated accounts, 429 after
        repeated failures
    """
    auth_service = AuthService(cache_manager, rate_limiter)
    profile, tokens = await auth_service.login(db, data, ip=client_ip(request))
    return _session(profile, tokens)


@router.post(
    "/refresh",
    response_model=SessionResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
)
async def refresh_token(
    data: TokenRefresh,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> SessionResponse:
    """Exchange a refresh token for a new token pair."""
    auth_service = AuthService(cache_manager)
    profile, tokens = await auth_service.refresh_session(db, data.refresh_token)
    return _session(profile, tokens)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout and revoke tokens",
)
async def logout(
    data: TokenRefresh,
    cache_manager: CacheManagerDep,
) -> None:
    """Revoke the refresh token so the session cannot be restored."""
    AuthService(cache_manager).revoke_token(data.refresh_token)


@router.get(
    "/session",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Current session",
)
async def get_session(current_user: CurrentUser) -> ProfileResponse:
    """Identity and profile of the bearer token's owner."""
    return ProfileResponse.model_validate(current_user)
