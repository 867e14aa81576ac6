"""Mood log endpoints for the mental health page."""

from fastapi import APIRouter, status

from healthmate.dependencies import DatabaseSession, PatientUser
from healthmate.schemas.mood import MoodLogCreate, MoodLogResponse
from healthmate.services.mood_service import MoodService

router = APIRouter(prefix="/mood-logs")


@router.post(
    "",
    response_model=MoodLogResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log today's mood",
)
async def log_mood(
    data: MoodLogCreate,
    current_user: PatientUser,
    db: DatabaseSession,
) -> MoodLogResponse:
    return await MoodService(db).log_mood(current_user["id"], data)


@router.get(
    "",
    response_model=list[MoodLogResponse],
    status_code=status.HTTP_200_OK,
    summary="Recent moods",
)
async def recent_moods(current_user: PatientUser, db: DatabaseSession) -> list[MoodLogResponse]:
    """The seven most recent check-ins."""
    return await MoodService(db).recent_moods(current_user["id"])
