"""Appointment schemas for request/response validation."""

from datetime import UTC, date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentType(str, Enum):
    """How the consultation takes place."""

    VIDEO = "video"
    IN_PERSON = "in_person"
    PHONE = "phone"


class BookingRequest(BaseModel):
    """Patient request to turn an open slot into an appointment."""

    slot_id: UUID
    appointment_type: AppointmentType = AppointmentType.VIDEO
    reason: str = Field(..., max_length=500)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        """A reason is required for every booking."""
        v = v.strip()
        if not v:
            raise ValueError("Please provide a reason for the appointment")
        return v


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=1000)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    doctor_id: UUID
    patient_id: UUID
    slot_id: UUID | None = None
    appointment_date: date
    appointment_time: str
    duration: int | None = 30
    type: AppointmentType
    status: AppointmentStatus
    reason: str | None = None
    notes: str | None = None
    meeting_link: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    doctor_name: str | None = None
    patient_name: str | None = None
    specialization: str | None = None

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def elapsed_seconds(self) -> int | None:
        """Running consultation time while in progress."""
        if self.status != AppointmentStatus.IN_PROGRESS or self.started_at is None:
            return None
        started = self.started_at
        if started.tzinfo is None:
            started = started.replace(tzinfo=UTC)
        return max(0, int((datetime.now(UTC) - started).total_seconds()))


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    from_date: date | None = None
    to_date: date | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class PatientSummary(BaseModel):
    """Patient row on the doctor's patients page."""

    id: UUID
    full_name: str
    email: str
    phone: str | None = None
    appointment_count: int
    last_appointment_date: date | None = None
