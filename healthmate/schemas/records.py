"""Medical record schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class RecordType(str, Enum):
    """Kinds of documents kept in the health record."""

    LAB = "lab"
    PRESCRIPTION = "prescription"
    IMAGING = "imaging"
    CONSULTATION = "consultation"
    VACCINATION = "vaccination"
    OTHER = "other"


class MedicalRecordCreate(BaseModel):
    """Schema for creating a record without a file."""

    title: str = Field(..., min_length=1, max_length=200)
    record_type: RecordType = RecordType.OTHER
    description: str | None = Field(None, max_length=5000)
    patient_id: UUID | None = Field(
        None, description="Required when a doctor creates a record for a patient"
    )


class MedicalRecordResponse(BaseModel):
    """Schema for record response."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID | None = None
    title: str
    record_type: RecordType | None = None
    description: str | None = None
    file_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
