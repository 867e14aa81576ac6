"""Prescription schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class PrescriptionCreate(BaseModel):
    """Doctor-issued prescription."""

    patient_id: UUID
    medication_name: str = Field(..., min_length=1, max_length=200)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)
    duration: str | None = Field(None, max_length=100)
    instructions: str | None = Field(None, max_length=2000)


class PrescriptionUpdate(BaseModel):
    """Partial prescription update by its doctor."""

    dosage: str | None = Field(None, min_length=1, max_length=100)
    frequency: str | None = Field(None, min_length=1, max_length=100)
    duration: str | None = Field(None, max_length=100)
    instructions: str | None = Field(None, max_length=2000)
    is_active: bool | None = None


class PrescriptionResponse(BaseModel):
    """Schema for prescription response."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    medication_name: str
    dosage: str
    frequency: str
    duration: str | None = None
    instructions: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
