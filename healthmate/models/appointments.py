"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    func,
    text,
)

from healthmate.models.metadata import metadata

appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "patient_id",
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("slot_id", Uuid, ForeignKey("available_slots.id", ondelete="SET NULL")),
    # Appointment details
    Column("appointment_date", Date, nullable=False, index=True),
    Column("appointment_time", String(5), nullable=False),
    Column("duration", Integer, server_default=text("30")),
    Column("type", String(20), nullable=False, server_default=text("'video'")),
    Column("status", String(20), nullable=False, server_default=text("'pending'"), index=True),
    Column("reason", Text),
    Column("notes", Text),
    Column("meeting_link", Text),
    # Consultation lifecycle
    Column("started_at", DateTime(timezone=True)),
    Column("completed_at", DateTime(timezone=True)),
    Column("cancelled_at", DateTime(timezone=True)),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "type IN ('video', 'in_person', 'phone')",
        name="appointments_type_check",
    ),
)
