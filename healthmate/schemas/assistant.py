"""Schemas for the AI assistant endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One message of a chat-completion request."""

    role: Literal["system", "user", "assistant"]
    content: str


class SymptomCheckRequest(BaseModel):
    """Free-text symptom description."""

    symptoms: str = Field(..., min_length=1, max_length=4000)


class MentalHealthRequest(BaseModel):
    """Message to the mental-health assistant."""

    message: str = Field(..., min_length=1, max_length=4000)
    mood_level: int | None = Field(None, ge=1, le=5)


class ConsultationSummaryRequest(BaseModel):
    """Consultation transcript to summarize."""

    transcript: str = Field(..., min_length=1, max_length=20000)


class EducationRequest(BaseModel):
    """Topic for patient education content."""

    topic: str = Field(..., min_length=1, max_length=200)


class TriageRequest(BaseModel):
    """Symptoms plus optional vital signs."""

    symptoms: str = Field(..., min_length=1, max_length=4000)
    vitals: dict[str, Any] | None = None


class AssistantResponse(BaseModel):
    """Generated text returned by the assistant."""

    response: str
