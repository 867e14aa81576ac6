"""Create portal tables.

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.TIMESTAMP(timezone=True), nullable=True)
    return sa.Column(
        name, sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("NOW()")
    )


def _profile_fk(name: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("profiles.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    """Create every portal table."""
    # Enable pgcrypto extension
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        "profiles",
        _id_column(),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'patient'")),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("emergency_contact", sa.Text(), nullable=True),
        sa.Column("medical_license", sa.String(100), nullable=True),
        sa.Column("specialization", sa.String(200), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("preferences", postgresql.JSONB(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_login_at", nullable=True),
        sa.CheckConstraint("role IN ('patient', 'doctor', 'admin')", name="profiles_role_check"),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_role", "profiles", ["role"])

    op.create_table(
        "available_slots",
        _id_column(),
        _profile_fk("doctor_id"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
    )
    op.create_index("ix_available_slots_doctor_id", "available_slots", ["doctor_id"])
    op.create_index(
        "idx_available_slots_doctor_date",
        "available_slots",
        ["doctor_id", "date", "start_time"],
        unique=True,
    )

    op.create_table(
        "appointments",
        _id_column(),
        _profile_fk("doctor_id"),
        _profile_fk("patient_id"),
        sa.Column(
            "slot_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("available_slots.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.String(5), nullable=False),
        sa.Column("duration", sa.Integer(), server_default=sa.text("30")),
        sa.Column("type", sa.String(20), nullable=False, server_default=sa.text("'video'")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("meeting_link", sa.Text(), nullable=True),
        _timestamp("started_at", nullable=True),
        _timestamp("completed_at", nullable=True),
        _timestamp("cancelled_at", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "type IN ('video', 'in_person', 'phone')",
            name="appointments_type_check",
        ),
    )
    op.create_index("ix_appointments_doctor_id", "appointments", ["doctor_id"])
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_appointment_date", "appointments", ["appointment_date"])
    op.create_index("ix_appointments_status", "appointments", ["status"])

    op.create_table(
        "medical_records",
        _id_column(),
        _profile_fk("patient_id"),
        _profile_fk("doctor_id", nullable=True, ondelete="SET NULL"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("record_type", sa.String(30), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_url", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_medical_records_patient_id", "medical_records", ["patient_id"])

    op.create_table(
        "vitals",
        _id_column(),
        _profile_fk("patient_id"),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("value", sa.String(20), nullable=False),
        sa.Column("unit", sa.String(20), nullable=False),
        sa.Column("status", sa.String(10), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("recorded_at"),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "type IN ('blood_pressure', 'heart_rate', 'temperature', 'weight', 'height', "
            "'blood_sugar')",
            name="vitals_type_check",
        ),
        sa.CheckConstraint("status IN ('normal', 'high', 'low')", name="vitals_status_check"),
    )
    op.create_index("idx_vitals_patient_type", "vitals", ["patient_id", "type", "recorded_at"])

    op.create_table(
        "prescriptions",
        _id_column(),
        _profile_fk("patient_id"),
        _profile_fk("doctor_id"),
        sa.Column("medication_name", sa.Text(), nullable=False),
        sa.Column("dosage", sa.Text(), nullable=False),
        sa.Column("frequency", sa.Text(), nullable=False),
        sa.Column("duration", sa.Text(), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_prescriptions_patient_id", "prescriptions", ["patient_id"])
    op.create_index("ix_prescriptions_doctor_id", "prescriptions", ["doctor_id"])

    op.create_table(
        "notifications",
        _id_column(),
        _profile_fk("user_id"),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(50), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("created_at"),
    )
    op.create_index("idx_notifications_user_read", "notifications", ["user_id", "is_read"])

    op.create_table(
        "mood_logs",
        _id_column(),
        _profile_fk("user_id"),
        sa.Column("mood", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint("mood BETWEEN 1 AND 5", name="mood_logs_mood_check"),
    )
    op.create_index("ix_mood_logs_user_id", "mood_logs", ["user_id"])

    op.create_table(
        "articles",
        _id_column(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read_time", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("trending", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _profile_fk("author_id", nullable=True, ondelete="SET NULL"),
        _timestamp("created_at"),
    )
    op.create_index("ix_articles_category", "articles", ["category"])

    op.create_table(
        "activity_logs",
        _id_column(),
        sa.Column("level", sa.String(10), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("user_email", sa.Text(), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("ip", sa.String(45), nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "level IN ('info', 'warning', 'success', 'error')",
            name="activity_logs_level_check",
        ),
    )
    op.create_index("idx_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    """Drop every portal table."""
    for table in (
        "activity_logs",
        "articles",
        "mood_logs",
        "notifications",
        "prescriptions",
        "vitals",
        "medical_records",
        "appointments",
        "available_slots",
        "profiles",
    ):
        op.drop_table(table)
