"""FastAPI dependencies."""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

import redis
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.completion import CompletionClient, get_completion_client
from healthmate.core.exceptions import ForbiddenException, UnauthorizedException
from healthmate.core.meetings import MeetingProvider, get_meeting_provider
from healthmate.core.realtime import ChangeFeed
from healthmate.core.redis_client import (
    CacheManager,
    IdempotencyStore,
    RateLimiter,
    get_redis_client,
)
from healthmate.core.security import decode_access_token
from healthmate.core.storage import FileStorage, get_file_storage
from healthmate.database import get_db
from healthmate.services.profile_service import ProfileService

# Security; missing credentials are reported as 401 by get_current_user_id
security = HTTPBearer(auto_error=False)

RedisClient = Annotated[redis.Redis, Depends(get_redis_client)]
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]


def get_cache_manager(redis_client: RedisClient) -> CacheManager:
    """Cache manager over the shared Redis client."""
    return CacheManager(redis_client)


def get_rate_limiter(redis_client: RedisClient) -> RateLimiter:
    """Rate limiter over the shared Redis client."""
    return RateLimiter(redis_client)


def get_change_feed(redis_client: RedisClient) -> ChangeFeed:
    """Change feed publishing on the shared Redis client."""
    return ChangeFeed(redis_client)


CacheManagerDep = Annotated[CacheManager, Depends(get_cache_manager)]


def get_idempotency_store(cache: CacheManagerDep) -> IdempotencyStore:
    """Idempotency key store."""
    return IdempotencyStore(cache)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> UUID:
    """
    Extract and validate the profile ID from the bearer token.

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise UnauthorizedException("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Could not validate credentials")

    user_id_str = payload.get("sub")
    if user_id_str is None or not isinstance(user_id_str, str):
        raise UnauthorizedException("Could not validate credentials")

    try:
        return UUID(user_id_str)
    except ValueError:
        raise UnauthorizedException("Invalid user ID format")


async def get_current_user(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    db: DatabaseSession,
    cache: CacheManagerDep,
) -> dict:
    """
    Get the caller's profile.

    Raises:
        UnauthorizedException: If the profile no longer exists
        ForbiddenException: If the account is deactivated
    """
    profile = await ProfileService(cache).get_profile_by_id(db, user_id)

    if not profile:
        raise UnauthorizedException("User not found")

    if not profile["is_active"]:
        raise ForbiddenException("User account is deactivated")

    return profile


CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
CurrentUser = Annotated[dict, Depends(get_current_user)]


def require_roles(*roles: str) -> Callable[..., Awaitable[dict]]:
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        DoctorUser = Annotated[dict, Depends(require_roles("doctor"))]
    """

    async def checker(current_user: CurrentUser) -> dict:
        if current_user["role"] not in roles:
            raise ForbiddenException(f"Access denied for role {current_user['role']}")
        return current_user

    return checker


PatientUser = Annotated[dict, Depends(require_roles("patient"))]
DoctorUser = Annotated[dict, Depends(require_roles("doctor"))]
AdminUser = Annotated[dict, Depends(require_roles("admin"))]
StaffUser = Annotated[dict, Depends(require_roles("doctor", "admin"))]

ChangeFeedDep = Annotated[ChangeFeed, Depends(get_change_feed)]
IdempotencyDep = Annotated[IdempotencyStore, Depends(get_idempotency_store)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
CompletionClientDep = Annotated[CompletionClient, Depends(get_completion_client)]
FileStorageDep = Annotated[FileStorage, Depends(get_file_storage)]
MeetingProviderDep = Annotated[MeetingProvider, Depends(get_meeting_provider)]


def client_ip(request: Request) -> str | None:
    """Caller address recorded in activity logs."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
