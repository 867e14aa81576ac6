"""Education article model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
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

articles = Table(
    "articles",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("title", Text, nullable=False),
    Column("category", String(50), nullable=False, index=True),
    Column("content", Text, nullable=False),
    # Minutes
    Column("read_time", Integer, nullable=False, server_default=text("1")),
    Column("trending", Boolean, nullable=False, server_default=text("false")),
    Column("author_id", Uuid, ForeignKey("profiles.id", ondelete="SET NULL")),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
