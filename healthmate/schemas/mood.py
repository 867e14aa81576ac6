"""Mood log schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

MOOD_LABELS = {
    1: "Very Sad",
    2: "Sad",
    3: "Neutral",
    4: "Happy",
    5: "Very Happy",
}


class MoodLogCreate(BaseModel):
    """Mood check-in with an optional journal note."""

    mood: int = Field(..., ge=1, le=5)
    note: str | None = Field(None, max_length=2000)


class MoodLogResponse(BaseModel):
    """Schema for mood log response."""

    id: UUID
    user_id: UUID
    mood: int
    note: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        """Human label for the mood value."""
        return MOOD_LABELS[self.mood]
