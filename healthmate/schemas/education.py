"""Education hub schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class ArticleCategory(str, Enum):
    """Education hub categories."""

    GENERAL_HEALTH = "General Health"
    MENTAL_HEALTH = "Mental Health"
    HEART_HEALTH = "Heart Health"
    NUTRITION = "Nutrition"
    EXERCISE = "Exercise"


class ArticleGenerateRequest(BaseModel):
    """Ask the assistant to write an article about a topic."""

    topic: str = Field(..., min_length=1, max_length=200)
    category: ArticleCategory = ArticleCategory.GENERAL_HEALTH


class ArticleResponse(BaseModel):
    """Schema for article response."""

    id: UUID
    title: str
    category: ArticleCategory
    content: str
    read_time: int
    trending: bool
    author_id: UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
