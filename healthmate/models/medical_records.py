"""Medical record model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Text, Uuid, func

from healthmate.models.metadata import metadata

medical_records = Table(
    "medical_records",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "patient_id",
        Uuid,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("doctor_id", Uuid, ForeignKey("profiles.id", ondelete="SET NULL")),
    Column("title", Text, nullable=False),
    Column("record_type", String(30)),
    Column("description", Text),
    Column("file_url", Text),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
