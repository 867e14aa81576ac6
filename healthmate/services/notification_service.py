"""Notification service for in-app notifications."""

from uuid import UUID

import structlog
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.core.exceptions import NotFoundException
from healthmate.core.realtime import ChangeFeed
from healthmate.models.notifications import notifications
from healthmate.schemas.notifications import NotificationResponse, NotificationType

logger = structlog.get_logger(__name__)


class NotificationService:
    """Service for managing in-app notifications."""

    def __init__(self, db: AsyncSession, changes: ChangeFeed | None = None):
        """Initialize service with database session and optional change feed."""
        self.db = db
        self.changes = changes

    async def create(
        self,
        user_id: UUID,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.SYSTEM,
        commit: bool = True,
    ) -> dict:
        """
        Create a notification for a user.

        Args:
            user_id: Recipient profile ID
            title: Notification title
            message: Notification body
            notification_type: Type of notification
            commit: False to write inside the caller's transaction

        Returns:
            Created notification row
        """
        stmt = (
            insert(notifications)
            .values(
                user_id=user_id,
                title=title,
                message=message,
                type=notification_type.value,
            )
            .returning(notifications)
        )
        result = await self.db.execute(stmt)
        row = dict(result.mappings().one())

        if commit:
            await self.db.commit()
            self.publish(row)

        logger.info(
            "notification_created",
            user_id=str(user_id),
            notification_type=notification_type.value,
        )
        return row

    def publish(self, row: dict) -> None:
        """Announce a committed notification."""
        if self.changes:
            self.changes.publish("notifications", "insert", row["id"], [row["user_id"]])

    async def list_notifications(
        self,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[NotificationResponse]:
        """List a user's notifications, newest first."""
        conditions = [notifications.c.user_id == user_id]
        if unread_only:
            conditions.append(notifications.c.is_read.is_(False))

        stmt = (
            select(notifications)
            .where(and_(*conditions))
            .order_by(notifications.c.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [NotificationResponse.model_validate(dict(row)) for row in rows]

    async def unread_count(self, user_id: UUID) -> int:
        """Count unread notifications."""
        stmt = (
            select(func.count())
            .select_from(notifications)
            .where(and_(notifications.c.user_id == user_id, notifications.c.is_read.is_(False)))
        )
        return (await self.db.execute(stmt)).scalar() or 0

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> NotificationResponse:
        """
        Mark one notification read.

        Raises:
            NotFoundException: If the notification does not belong to the user
        """
        stmt = (
            update(notifications)
            .where(
                and_(
                    notifications.c.id == notification_id,
                    notifications.c.user_id == user_id,
                )
            )
            .values(is_read=True)
            .returning(notifications)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            await self.db.rollback()
            raise NotFoundException("Notification not found")

        await self.db.commit()
        if self.changes:
            self.changes.publish("notifications", "update", row["id"], [user_id])
        return NotificationResponse.model_validate(dict(row))

    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark every unread notification read; returns how many changed."""
        stmt = (
            update(notifications)
            .where(and_(notifications.c.user_id == user_id, notifications.c.is_read.is_(False)))
            .values(is_read=True)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount or 0  # type: ignore[attr-defined]
