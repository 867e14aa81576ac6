"""Admin-specific schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from healthmate.schemas.profiles import ProfileDetails, ProfileResponse, Role


class LogLevel(str, Enum):
    """Activity log severity."""

    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class AdminUserCreate(ProfileDetails):
    """Account created by an admin; without a password it cannot log in until reset."""

    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)
    role: Role = Role.PATIENT
    password: str | None = Field(None, min_length=6)


class AdminUserUpdate(BaseModel):
    """Admin changes to an account."""

    is_active: bool | None = None
    role: Role | None = None


class AdminUserListResponse(BaseModel):
    """Response schema for admin user listing."""

    users: list[ProfileResponse]
    total: int
    page: int
    page_size: int
    total_pages: int

    model_config = ConfigDict(from_attributes=True)


class ActivityLogResponse(BaseModel):
    """One system log row."""

    id: UUID
    level: LogLevel
    action: str
    user_email: str
    details: str | None = None
    ip: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityLogListResponse(BaseModel):
    """Response schema for activity logs."""

    logs: list[ActivityLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class AdminStatsResponse(BaseModel):
    """Headline numbers for the admin panel."""

    users: dict[str, int] = Field(
        ...,
        description="Users by role plus total and active",
        examples=[{"total": 120, "active": 110, "patient": 100, "doctor": 18, "admin": 2}],
    )
    appointments: dict[str, int] = Field(
        ..., description="Appointments total, today and by status"
    )
    logs: dict[str, int] = Field(..., description="Activity log counts by level for today")
