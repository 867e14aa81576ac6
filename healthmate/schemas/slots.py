"""Available slot schemas for request/response validation."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


def normalize_clock(value: str) -> str:
    """
    Normalize a wall-clock time to zero-padded ``HH:MM``.

    Accepts ``H:MM``, ``HH:MM`` and ``HH:MM:SS``.
    """
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError("Time must be formatted as HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError("Time is out of range")
    return f"{hour:02d}:{minute:02d}"


def add_minutes(start: str, minutes: int) -> str:
    """
    Add ``minutes`` to an ``HH:MM`` clock time.

    Raises:
        ValueError: If the result would fall on the next day
    """
    hour, minute = (int(p) for p in normalize_clock(start).split(":"))
    total = hour * 60 + minute + minutes
    if total >= 24 * 60:
        raise ValueError("Slot must end before midnight")
    return f"{total // 60:02d}:{total % 60:02d}"


class SlotCreate(BaseModel):
    """Doctor-published time slot: start time plus duration."""

    date: date
    start_time: str
    duration: int = Field(default=30, ge=5, le=480, description="Length in minutes")

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        """Store times zero-padded."""
        return normalize_clock(v)


class SlotResponse(BaseModel):
    """Schema for slot response."""

    id: UUID
    doctor_id: UUID
    date: date
    start_time: str
    end_time: str
    is_available: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AvailableDoctor(BaseModel):
    """Row returned by the available doctors listing."""

    id: UUID
    full_name: str
    specialization: str | None = None
    avatar_url: str | None = None
    available_slots: int
