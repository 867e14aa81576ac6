"""Profile schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class Role(str, Enum):
    """Portal role enumeration."""

    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class ProfileDetails(BaseModel):
    """Optional profile attributes collected at signup or in settings."""

    phone: str | None = Field(None, max_length=20)
    date_of_birth: date | None = None
    address: str | None = Field(None, max_length=500)
    emergency_contact: str | None = Field(None, max_length=200)
    medical_license: str | None = Field(None, max_length=100)
    specialization: str | None = Field(None, max_length=200)


class ProfileUpdate(ProfileDetails):
    """Self-service profile update; role, email and id are not accepted."""

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, min_length=1, max_length=200)
    avatar_url: str | None = None

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str | None) -> str:
        """A name may be changed but never cleared."""
        v = (v or "").strip()
        if not v:
            raise ValueError("Full name is required")
        return v


class ProfileResponse(ProfileDetails):
    """Profile schema for API responses."""

    id: UUID
    email: EmailStr
    full_name: str
    role: Role
    avatar_url: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PublicProfile(BaseModel):
    """Profile fields visible to other portal users."""

    id: UUID
    full_name: str
    role: Role
    specialization: str | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationPreferences(BaseModel):
    """Notification section of the settings page."""

    email_notifications: bool = True
    push_notifications: bool = True
    sms_notifications: bool = False
    appointment_reminders: bool = True
    health_updates: bool = True
    system_updates: bool = False


class PrivacyPreferences(BaseModel):
    """Privacy section of the settings page."""

    profile_visibility: str = Field(default="private", pattern="^(private|doctors|public)$")
    data_sharing: bool = False
    analytics_opt_in: bool = True
    marketing_emails: bool = False


class AppearancePreferences(BaseModel):
    """Appearance section of the settings page."""

    dark_mode: bool = False
    language: str = "en"
    timezone: str = "UTC"
    date_format: str = "MM/DD/YYYY"


class Preferences(BaseModel):
    """All settings sections with their defaults."""

    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    privacy: PrivacyPreferences = Field(default_factory=PrivacyPreferences)
    appearance: AppearancePreferences = Field(default_factory=AppearancePreferences)


class PreferencesUpdate(BaseModel):
    """Partial update; each given section is merged into the stored one."""

    notifications: dict[str, Any] | None = None
    privacy: dict[str, Any] | None = None
    appearance: dict[str, Any] | None = None
