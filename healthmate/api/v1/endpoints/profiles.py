"""Profile and settings endpoints."""

from uuid import UUID

from fastapi import APIRouter, File, UploadFile, status

from healthmate.core.exceptions import NotFoundException
from healthmate.dependencies import (
    CacheManagerDep,
    ChangeFeedDep,
    CurrentUser,
    DatabaseSession,
    FileStorageDep,
)
from healthmate.schemas.profiles import (
    Preferences,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    PublicProfile,
)
from healthmate.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles")

AVATARS_BUCKET = "avatars"


@router.get(
    "/me",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current profile",
)
async def get_my_profile(current_user: CurrentUser) -> ProfileResponse:
    """Get the authenticated caller's profile."""
    return ProfileResponse.model_validate(current_user)


@router.patch(
    "/me",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Update current profile",
)
async def update_my_profile(
    data: ProfileUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    changes: ChangeFeedDep,
) -> ProfileResponse:
    """
    Update the caller's own profile.

    Only personal details are accepted; sending ``role``, ``email`` or ``id``
    is a validation error.
    """
    service = ProfileService(cache_manager, changes)
    profile = await service.update_profile(db, current_user["id"], data)
    return ProfileResponse.model_validate(profile)


@router.get(
    "/me/preferences",
    response_model=Preferences,
    status_code=status.HTTP_200_OK,
    summary="Get settings",
)
async def get_my_preferences(
    current_user: CurrentUser,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> Preferences:
    """Notification, privacy and appearance settings with defaults filled in."""
    return await ProfileService(cache_manager).get_preferences(db, current_user["id"])


@router.put(
    "/me/preferences",
    response_model=Preferences,
    status_code=status.HTTP_200_OK,
    summary="Update settings",
)
async def update_my_preferences(
    data: PreferencesUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    changes: ChangeFeedDep,
) -> Preferences:
    """Merge the given sections into the stored settings."""
    return await ProfileService(cache_manager, changes).update_preferences(
        db, current_user["id"], data
    )


@router.post(
    "/me/avatar",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload avatar",
)
async def upload_avatar(
    current_user: CurrentUser,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    storage: FileStorageDep,
    changes: ChangeFeedDep,
    file: UploadFile = File(...),
) -> ProfileResponse:
    """Store a new avatar image and point the profile at it."""
    object_path = await storage.upload(
        AVATARS_BUCKET, str(current_user["id"]), file.filename, await file.read()
    )
    profile = await ProfileService(cache_manager, changes).set_avatar(
        db, current_user["id"], storage.get_public_url(object_path)
    )
    return ProfileResponse.model_validate(profile)


@router.get(
    "/{profile_id}",
    response_model=PublicProfile,
    status_code=status.HTTP_200_OK,
    summary="Get public profile",
)
async def get_profile(
    profile_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> PublicProfile:
    """Name, role and specialization of another portal user."""
    profile = await ProfileService(cache_manager).get_profile_by_id(db, profile_id)
    if not profile:
        raise NotFoundException("Profile not found")
    return PublicProfile.model_validate(profile)
