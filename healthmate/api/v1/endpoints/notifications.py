"""Notification endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from healthmate.dependencies import ChangeFeedDep, CurrentUser, DatabaseSession
from healthmate.schemas.notifications import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from healthmate.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications")


@router.get(
    "",
    response_model=list[NotificationResponse],
    status_code=status.HTTP_200_OK,
    summary="List notifications",
)
async def list_notifications(
    current_user: CurrentUser,
    db: DatabaseSession,
    unread_only: bool = Query(False, description="Only unread notifications"),
    limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
) -> list[NotificationResponse]:
    """
    Get the caller's notifications, newest first.

    Args:
        current_user: Authenticated user
        db: Database session
        unread_only: Skip notifications already read
        limit: Page size
        offset: Pagination offset

    Returns:
        Notifications for the caller
    """
    return await NotificationService(db).list_notifications(
        current_user["id"], unread_only=unread_only, limit=limit, offset=offset
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    status_code=status.HTTP_200_OK,
    summary="Count unread notifications",
)
async def unread_count(current_user: CurrentUser, db: DatabaseSession) -> UnreadCountResponse:
    """Badge counter for the header bell."""
    count = await NotificationService(db).unread_count(current_user["id"])
    return UnreadCountResponse(unread=count)


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark notification as read",
)
async def mark_notification_read(
    notification_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
    changes: ChangeFeedDep,
) -> NotificationResponse:
    """Mark one of the caller's notifications read."""
    return await NotificationService(db, changes).mark_read(notification_id, current_user["id"])


@router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark all notifications as read",
)
async def mark_all_read(current_user: CurrentUser, db: DatabaseSession) -> MarkAllReadResponse:
    """Mark every unread notification of the caller read."""
    updated = await NotificationService(db).mark_all_read(current_user["id"])
    return MarkAllReadResponse(updated=updated)
