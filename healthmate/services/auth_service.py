"""Authentication service for email/password sessions and JWT."""

from datetime import timedelta
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.config import settings
from healthmate.core.exceptions import (
    ForbiddenException,
    RateLimitException,
    UnauthorizedException,
)
from healthmate.core.redis_client import CacheManager, RateLimiter
from healthmate.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    verify_password,
)
from healthmate.schemas.admin import LogLevel
from healthmate.schemas.auth import LoginRequest, SignupRequest, Token
from healthmate.services.activity_log_service import ActivityLogService
from healthmate.services.profile_service import ProfileService

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"


class AuthService:
    """Authentication service for handling signup, login and JWT operations."""

    def __init__(self, cache_manager: CacheManager, rate_limiter: RateLimiter | None = None):
        """Initialize auth service with cache manager and optional rate limiter."""
        self.cache = cache_manager
        self.rate_limiter = rate_limiter

    @staticmethod
    def _login_key(email: str) -> str:
        return f"login:{email.lower()}"

    async def signup(
        self, db: AsyncSession, data: SignupRequest, ip: str | None = None
    ) -> tuple[dict, Token]:
        """
        Register a new account and open a session for it.

        Args:
            db: Database session
            data: Signup form
            ip: Caller address for the activity log

        Returns:
            Tuple of (profile dict, token pair)

        Raises:
            ConflictException: If the email is already registered
        """
        profile_service = ProfileService(self.cache)
        profile = await profile_service.create_profile(
            db,
            email=data.email,
            full_name=data.full_name,
            role=data.role,
            password=data.password,
            details=data.additional_data,
        )

        await ActivityLogService(db).log(
            "User registered",
            level=LogLevel.SUCCESS,
            user_email=profile["email"],
            details=f"New {profile['role']} account",
            ip=ip,
        )

        return profile, self.create_tokens(str(profile["id"]), profile["role"])

    async def login(
        self, db: AsyncSession, data: LoginRequest, ip: str | None = None
    ) -> tuple[dict, Token]:
        """
        Verify credentials and open a session.

        Raises:
            RateLimitException: After too many failed attempts for the email
            UnauthorizedException: If the credentials are wrong
            ForbiddenException: If the account is deactivated
        """
        key = self._login_key(data.email)
        if self.rate_limiter and self.rate_limiter.is_limited(key, settings.rate_limit_per_minute):
            logger.warning("login_rate_limited", email=data.email)
            raise RateLimitException()

        profile_service = ProfileService(self.cache)
        profile = await profile_service.get_profile_by_email(db, data.email)

        if not profile or not verify_password(data.password, profile["password_hash"]):
            if self.rate_limiter:
                self.rate_limiter.record(key)
            await ActivityLogService(db).log(
                "Failed login attempt",
                level=LogLevel.WARNING,
                user_email=data.email,
                ip=ip,
            )
            raise UnauthorizedException(INVALID_CREDENTIALS)

        if not profile["is_active"]:
            raise ForbiddenException("User account is deactivated")

        if self.rate_limiter:
            self.rate_limiter.reset(key)

        await profile_service.update_last_login(db, profile["id"])
        await ActivityLogService(db).log(
            "User login", level=LogLevel.INFO, user_email=profile["email"], ip=ip
        )
        logger.info("user_logged_in", profile_id=str(profile["id"]))

        return profile, self.create_tokens(str(profile["id"]), profile["role"])

    def create_tokens(self, profile_id: str, role: str) -> Token:
        """
        Create access and refresh tokens for a profile.

        Args:
            profile_id: Profile identifier
            role: Role claim carried by the access token

        Returns:
            Token pair (access and refresh)
        """
        access_token = create_access_token(
            data={"sub": profile_id, "role": role},
            expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        )

        refresh_token = create_refresh_token(
            data={"sub": profile_id},
            expires_delta=timedelta(days=settings.refresh_token_expire_days),
        )

        return Token(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
        )

    async def refresh_session(self, db: AsyncSession, refresh_token: str) -> tuple[dict, Token]:
        """
        Exchange a refresh token for a new token pair.

        The presented refresh token is revoked so it cannot be replayed.

        Raises:
            UnauthorizedException: If the token is invalid, revoked or its profile is gone
        """
        payload = decode_refresh_token(refresh_token)

        if payload is None or payload.get("sub") is None:
            raise UnauthorizedException("Invalid refresh token")

        if self.cache.exists(f"blacklist:{refresh_token}"):
            raise UnauthorizedException("Token has been revoked")

        profile = await ProfileService(self.cache).get_profile_by_id(db, UUID(payload["sub"]))
        if not profile or not profile["is_active"]:
            raise UnauthorizedException("Invalid refresh token")

        self.revoke_token(refresh_token)
        return profile, self.create_tokens(str(profile["id"]), profile["role"])

    def revoke_token(self, token: str, ttl: int | None = None) -> None:
        """
        Revoke a refresh token by adding it to blacklist.

        Args:
            token: Token to revoke
            ttl: Time to live for blacklist entry (default: refresh token lifetime)
        """
        ttl = ttl or settings.refresh_token_expire_days * 86400
        self.cache.set(f"blacklist:{token}", "1", ttl=ttl)
