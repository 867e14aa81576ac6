"""Activity log service backing the admin system log view."""

import csv
import io

import structlog
from sqlalchemy import and_, func, insert, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.models.activity_logs import activity_logs
from healthmate.schemas.admin import ActivityLogListResponse, ActivityLogResponse, LogLevel

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "system"

CSV_COLUMNS = ["created_at", "level", "action", "user_email", "details", "ip"]


class ActivityLogService:
    """Service for writing and browsing activity logs."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def log(
        self,
        action: str,
        level: LogLevel = LogLevel.INFO,
        user_email: str | None = None,
        details: str | None = None,
        ip: str | None = None,
        commit: bool = True,
    ) -> None:
        """
        Record an activity.

        Pass ``commit=False`` to write inside a transaction the caller commits.
        Failures are logged and never raised.
        """
        stmt = insert(activity_logs).values(
            level=level.value,
            action=action,
            user_email=user_email or SYSTEM_ACTOR,
            details=details,
            ip=ip,
        )
        try:
            await self.db.execute(stmt)
            if commit:
                await self.db.commit()
        except SQLAlchemyError as e:
            logger.warning("activity_log_write_failed", action=action, error=str(e))
            if commit:
                await self.db.rollback()

    def _conditions(self, level: LogLevel | None, search: str | None) -> list:
        conditions = []
        if level:
            conditions.append(activity_logs.c.level == level.value)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    activity_logs.c.action.ilike(pattern),
                    activity_logs.c.user_email.ilike(pattern),
                    activity_logs.c.details.ilike(pattern),
                )
            )
        return conditions

    async def list_logs(
        self,
        level: LogLevel | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> ActivityLogListResponse:
        """List logs newest first with level filter and free-text search."""
        conditions = self._conditions(level, search)

        count_stmt = select(func.count()).select_from(activity_logs)
        if conditions:
            count_stmt = count_stmt.where(and_(*conditions))
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = select(activity_logs)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = (
            stmt.order_by(activity_logs.c.created_at.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
        rows = (await self.db.execute(stmt)).mappings().all()

        return ActivityLogListResponse(
            logs=[ActivityLogResponse.model_validate(dict(row)) for row in rows],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size,
        )

    async def recent(self, limit: int = 10) -> list[ActivityLogResponse]:
        """Latest entries for dashboards."""
        stmt = select(activity_logs).order_by(activity_logs.c.created_at.desc()).limit(limit)
        rows = (await self.db.execute(stmt)).mappings().all()
        return [ActivityLogResponse.model_validate(dict(row)) for row in rows]

    async def export_csv(self, level: LogLevel | None = None, search: str | None = None) -> str:
        """Render every matching log as CSV, newest first."""
        stmt = select(activity_logs)
        conditions = self._conditions(level, search)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(activity_logs.c.created_at.desc())
        rows = (await self.db.execute(stmt)).mappings().all()

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({column: row[column] for column in CSV_COLUMNS})
        return buffer.getvalue()
