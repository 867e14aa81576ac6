"""Admin-only endpoints for user management, system logs and statistics."""

from datetime import UTC, date, datetime
from uuid import UUID

from fastapi import APIRouter, Query, Request, Response, status
from sqlalchemy import func, select

from healthmate.core.exceptions import BadRequestException, NotFoundException
from healthmate.dependencies import (
    AdminUser,
    CacheManagerDep,
    ChangeFeedDep,
    DatabaseSession,
    client_ip,
)
from healthmate.models.activity_logs import activity_logs
from healthmate.models.appointments import appointments
from healthmate.schemas.admin import (
    ActivityLogListResponse,
    AdminStatsResponse,
    AdminUserCreate,
    AdminUserListResponse,
    AdminUserUpdate,
    LogLevel,
)
from healthmate.schemas.profiles import ProfileDetails, ProfileResponse, Role
from healthmate.services.activity_log_service import ActivityLogService
from healthmate.services.appointment_service import AppointmentService
from healthmate.services.profile_service import ProfileService

router = APIRouter(prefix="/admin")


@router.get(
    "/users",
    response_model=AdminUserListResponse,
    status_code=status.HTTP_200_OK,
    summary="List all users (admin only)",
)
async def list_all_users(
    admin_user: AdminUser,
    db: DatabaseSession,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    role: Role | None = Query(None, description="Filter by role"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    search: str | None = Query(None, description="Search by name or email"),
) -> AdminUserListResponse:
    """
    Get paginated list of all users with filtering.

    Args:
        admin_user: Authenticated admin user
        db: Database session
        page: Page number
        page_size: Items per page
        role: Filter by user role
        is_active: Filter by active status
        search: Search term for name/email

    Returns:
        Paginated user list with metadata
    """
    user_list, total = await ProfileService().list_profiles(
        db, search=search, role=role, is_active=is_active, page=page, page_size=page_size
    )

    return AdminUserListResponse(
        users=[ProfileResponse.model_validate(user) for user in user_list],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=(total + page_size - 1) // page_size,
    )


@router.post(
    "/users",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user (admin only)",
)
async def create_user(
    data: AdminUserCreate,
    request: Request,
    admin_user: AdminUser,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> ProfileResponse:
    """
    Create an account of any role.

    Without a password the account cannot log in until one is set.

    Raises:
        ConflictException: If the email is already registered
    """
    details = ProfileDetails(**data.model_dump(include=set(ProfileDetails.model_fields)))
    profile = await ProfileService(cache_manager).create_profile(
        db,
        email=data.email,
        full_name=data.full_name,
        role=data.role,
        password=data.password,
        details=details,
    )

    await ActivityLogService(db).log(
        "User created",
        level=LogLevel.SUCCESS,
        user_email=admin_user["email"],
        details=f"{profile['email']} ({profile['role']})",
        ip=client_ip(request),
    )
    return ProfileResponse.model_validate(profile)


async def _get_target(db: DatabaseSession, user_id: UUID) -> dict:
    profile = await ProfileService().get_profile_by_id(db, user_id)
    if not profile:
        raise NotFoundException("User not found")
    return profile


@router.patch(
    "/users/{user_id}",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Change a user's role or active flag (admin only)",
)
async def update_user(
    user_id: UUID,
    data: AdminUserUpdate,
    request: Request,
    admin_user: AdminUser,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    changes: ChangeFeedDep,
) -> ProfileResponse:
    """
    Activate, deactivate or change the role of an account.

    Admins cannot deactivate or demote themselves.
    """
    profile = await _get_target(db, user_id)
    is_self = profile["id"] == admin_user["id"]
    if is_self and (data.is_active is False or (data.role and data.role != Role.ADMIN)):
        raise BadRequestException("Admins cannot deactivate or demote themselves")

    service = ProfileService(cache_manager, changes)
    applied = []
    if data.is_active is not None and data.is_active != profile["is_active"]:
        profile = await service.set_active(db, user_id, data.is_active)
        applied.append("activated" if data.is_active else "deactivated")
    if data.role is not None and data.role.value != profile["role"]:
        profile = await service.set_role(db, user_id, data.role)
        applied.append(f"role set to {data.role.value}")

    if applied:
        await ActivityLogService(db).log(
            "User updated",
            user_email=admin_user["email"],
            details=f"{profile['email']}: {', '.join(applied)}",
            ip=client_ip(request),
        )
    return ProfileResponse.model_validate(profile)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate a user (admin only)",
)
async def deactivate_user(
    user_id: UUID,
    request: Request,
    admin_user: AdminUser,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    changes: ChangeFeedDep,
) -> None:
    """
    Deactivate an account.

    Profiles are never hard-deleted; appointments and records keep pointing at them.
    """
    profile = await _get_target(db, user_id)
    if profile["id"] == admin_user["id"]:
        raise BadRequestException("Admins cannot deactivate or demote themselves")

    await ProfileService(cache_manager, changes).set_active(db, user_id, False)
    await ActivityLogService(db).log(
        "User deactivated",
        level=LogLevel.WARNING,
        user_email=admin_user["email"],
        details=profile["email"],
        ip=client_ip(request),
    )


@router.get(
    "/logs",
    response_model=ActivityLogListResponse,
    status_code=status.HTTP_200_OK,
    summary="List system logs (admin only)",
)
async def list_logs(
    admin_user: AdminUser,
    db: DatabaseSession,
    level: LogLevel | None = Query(None, description="Filter by level"),
    search: str | None = Query(None, description="Search action, user or details"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=200, description="Items per page"),
) -> ActivityLogListResponse:
    return await ActivityLogService(db).list_logs(level, search, page, page_size)


@router.get(
    "/logs/export",
    status_code=status.HTTP_200_OK,
    summary="Export system logs as CSV (admin only)",
    response_class=Response,
)
async def export_logs(
    admin_user: AdminUser,
    db: DatabaseSession,
    level: LogLevel | None = Query(None, description="Filter by level"),
    search: str | None = Query(None, description="Search action, user or details"),
) -> Response:
    """Every log matching the filters, newest first, as a CSV download."""
    content = await ActivityLogService(db).export_csv(level, search)
    filename = f"system-logs-{date.today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/stats",
    response_model=AdminStatsResponse,
    status_code=status.HTTP_200_OK,
    summary="Get system statistics (admin only)",
)
async def get_stats(admin_user: AdminUser, db: DatabaseSession) -> AdminStatsResponse:
    """
    Headline numbers for the admin panel.

    Returns:
        User counts by role, appointment counts by status plus today's total,
        and today's log counts by level
    """
    users = await ProfileService().count_by_role(db)

    appointment_counts = await AppointmentService(db).status_counts()
    appointment_counts["total"] = sum(appointment_counts.values())
    today_result = await db.execute(
        select(func.count())
        .select_from(appointments)
        .where(appointments.c.appointment_date == date.today())
    )
    appointment_counts["today"] = today_result.scalar() or 0

    today_start = datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    log_rows = (
        await db.execute(
            select(activity_logs.c.level, func.count())
            .where(activity_logs.c.created_at >= today_start)
            .group_by(activity_logs.c.level)
        )
    ).all()
    log_counts = {level.value: 0 for level in LogLevel}
    log_counts.update({row[0]: row[1] for row in log_rows})

    return AdminStatsResponse(users=users, appointments=appointment_counts, logs=log_counts)
