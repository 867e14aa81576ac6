"""Authentication schemas."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from healthmate.config import settings
from healthmate.schemas.profiles import ProfileDetails, ProfileResponse, Role


class Token(BaseModel):
    """JWT token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenRefresh(BaseModel):
    """Token refresh / logout request schema."""

    refresh_token: str


class LoginRequest(BaseModel):
    """Email and password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class SignupRequest(BaseModel):
    """Account creation with role and optional profile attributes."""

    email: EmailStr
    password: str
    full_name: str = Field(..., min_length=1, max_length=200)
    role: Role = Role.PATIENT
    additional_data: ProfileDetails = Field(default_factory=ProfileDetails)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Reject passwords shorter than the configured minimum."""
        if len(v) < settings.min_password_length:
            raise ValueError(
                f"Password must be at least {settings.min_password_length} characters long"
            )
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        """Admin accounts are provisioned by other admins, never self-registered."""
        if v == Role.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return v

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Names are stored trimmed and must not be blank."""
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v


class SessionResponse(Token):
    """Token pair together with the caller's profile."""

    profile: ProfileResponse
