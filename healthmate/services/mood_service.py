"""Mood check-ins for the mental health page."""

from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from healthmate.models.mood_logs import mood_logs
from healthmate.schemas.mood import MoodLogCreate, MoodLogResponse

RECENT_MOODS = 7


class MoodService:
    """Service for mood logs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_mood(self, user_id: UUID, data: MoodLogCreate) -> MoodLogResponse:
        stmt = (
            insert(mood_logs)
            .values(user_id=user_id, mood=data.mood, note=data.note)
            .returning(mood_logs)
        )
        row = (await self.db.execute(stmt)).mappings().one()
        await self.db.commit()
        return MoodLogResponse.model_validate(dict(row))

    async def recent_moods(self, user_id: UUID, limit: int = RECENT_MOODS) -> list[MoodLogResponse]:
        """Latest check-ins, newest first."""
        stmt = (
            select(mood_logs)
            .where(mood_logs.c.user_id == user_id)
            .order_by(mood_logs.c.created_at.desc())
            .limit(limit)
        )
        rows = (await self.db.execute(stmt)).mappings().all()
        return [MoodLogResponse.model_validate(dict(row)) for row in rows]
