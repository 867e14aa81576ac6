"""Activity log model backing the admin system log view."""

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Index, String, Table, Text, Uuid, func

from healthmate.models.metadata import metadata

activity_logs = Table(
    "activity_logs",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("level", String(10), nullable=False),
    Column("action", Text, nullable=False),
    # "system" for events without a caller
    Column("user_email", Text, nullable=False),
    Column("details", Text),
    Column("ip", String(45)),  # IPv6 max length
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "level IN ('info', 'warning', 'success', 'error')",
        name="activity_logs_level_check",
    ),
    Index("idx_activity_logs_created_at", "created_at"),
)
