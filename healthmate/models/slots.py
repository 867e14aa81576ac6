"""Available slot model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Uuid,
    func,
    text,
)

from healthmate.models.metadata import metadata

available_slots = Table(
    "available_slots",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("date", Date, nullable=False),
    # Zero-padded "HH:MM" so lexical order is chronological
    Column("start_time", String(5), nullable=False),
    Column("end_time", String(5), nullable=False),
    # Flipped to false only by the booking operation
    Column("is_available", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Two requests racing past the overlap check cannot both insert the same start
    Index("idx_available_slots_doctor_date", "doctor_id", "date", "start_time", unique=True),
)
