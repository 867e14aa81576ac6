"""Vital reading schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class VitalType(str, Enum):
    """Tracked vital sign."""

    BLOOD_PRESSURE = "blood_pressure"
    HEART_RATE = "heart_rate"
    TEMPERATURE = "temperature"
    WEIGHT = "weight"
    HEIGHT = "height"
    BLOOD_SUGAR = "blood_sugar"


class VitalStatus(str, Enum):
    """Classification of a reading against its normal range."""

    NORMAL = "normal"
    HIGH = "high"
    LOW = "low"


class VitalCreate(BaseModel):
    """Schema for recording a vital reading."""

    type: VitalType
    value: str = Field(..., min_length=1, max_length=20)
    unit: str | None = Field(None, max_length=20)
    notes: str | None = Field(None, max_length=1000)
    recorded_at: datetime | None = None

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: object) -> object:
        """Numbers are accepted and kept as text."""
        if isinstance(v, int | float) and not isinstance(v, bool):
            return f"{v:g}"
        return v


class VitalResponse(BaseModel):
    """Schema for vital response."""

    id: UUID
    patient_id: UUID
    type: VitalType
    value: str
    unit: str
    status: VitalStatus | None = None
    notes: str | None = None
    recorded_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class VitalTypeInfo(BaseModel):
    """Display metadata for a vital type."""

    type: VitalType
    label: str
    unit: str
    normal_range: str
