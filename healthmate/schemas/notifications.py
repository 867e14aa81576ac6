"""In-app notification schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class NotificationType(str, Enum):
    """Notification type enumeration."""

    APPOINTMENT_BOOKED = "appointment_booked"
    APPOINTMENT_STATUS = "appointment_status"
    PRESCRIPTION = "prescription"
    RECORD = "record"
    SYSTEM = "system"


class NotificationResponse(BaseModel):
    """Schema for notification response."""

    id: UUID
    user_id: UUID
    title: str
    message: str
    type: str | None = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    """Unread notification counter."""

    unread: int


class MarkAllReadResponse(BaseModel):
    """Result of marking every notification read."""

    updated: int
