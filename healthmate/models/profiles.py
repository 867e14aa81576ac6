"""Profile model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from healthmate.models.metadata import metadata

profiles = Table(
    "profiles",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Identity
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=True),
    Column("full_name", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default=text("'patient'"), index=True),
    # Contact and personal details
    Column("phone", String(20)),
    Column("date_of_birth", Date),
    Column("address", Text),
    Column("emergency_contact", Text),
    # Doctor credentials
    Column("medical_license", String(100)),
    Column("specialization", String(200)),
    Column("avatar_url", Text),
    # Settings page sections (notifications / privacy / appearance)
    Column("preferences", JSON),
    # Account state
    Column("is_active", Boolean, nullable=False, server_default=text("true")),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("last_login_at", DateTime(timezone=True)),
    CheckConstraint("role IN ('patient', 'doctor', 'admin')", name="profiles_role_check"),
)
