"""Vital reading model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    func,
)

from healthmate.models.metadata import metadata

vitals = Table(
    "vitals",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "patient_id",
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("type", String(30), nullable=False),
    # Text so blood pressure can be kept as "systolic/diastolic"
    Column("value", String(20), nullable=False),
    Column("unit", String(20), nullable=False),
    Column("status", String(10)),
    Column("notes", Text),
    Column("recorded_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "type IN ('blood_pressure', 'heart_rate', 'temperature', 'weight', 'height', "
        "'blood_sugar')",
        name="vitals_type_check",
    ),
    CheckConstraint("status IN ('normal', 'high', 'low')", name="vitals_status_check"),
    Index("idx_vitals_patient_type", "patient_id", "type", "recorded_at"),
)
