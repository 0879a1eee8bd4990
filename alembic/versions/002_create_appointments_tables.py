"""Create appointments and appointment_messages tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-17 00:10:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("doctor_medical_id", sa.String(length=32), nullable=False),
        sa.Column("patient_medical_id", sa.String(length=32), nullable=False),
        sa.Column("doctor_name", sa.Text(), nullable=False),
        sa.Column("doctor_email", sa.Text(), nullable=True),
        sa.Column("patient_name", sa.Text(), nullable=False),
        sa.Column("patient_email", sa.Text(), nullable=True),
        sa.Column("preferred_date", sa.Date(), nullable=False),
        sa.Column("preferred_time", sa.Time(), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=True),
        sa.Column("scheduled_time", sa.Time(), nullable=True),
        sa.Column("meeting_type", sa.String(length=10), nullable=False),
        sa.Column("video_call_link", sa.Text(), nullable=True),
        sa.Column("symptoms", sa.Text(), nullable=False),
        sa.Column("urgency_level", sa.String(length=20), nullable=False),
        sa.Column("urgency_score", sa.Float(), nullable=False),
        sa.Column("from_symptom_checker", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("doctor_response_message", sa.Text(), nullable=True),
        sa.Column("doctor_responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(length=32), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled', 'completed')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "meeting_type IN ('online', 'offline')",
            name="appointments_meeting_type_check",
        ),
        sa.CheckConstraint(
            "urgency_level IN ('Routine', 'Same Day', 'Urgent', 'Emergency')",
            name="appointments_urgency_level_check",
        ),
        sa.CheckConstraint(
            "urgency_score >= 0 AND urgency_score <= 10",
            name="appointments_urgency_score_check",
        ),
        sa.CheckConstraint(
            "urgency_level = 'Routine' OR from_symptom_checker",
            name="appointments_urgency_gate_check",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("ix_appointments_doctor_medical_id", "appointments", ["doctor_medical_id"])
    op.create_index("ix_appointments_patient_medical_id", "appointments", ["patient_medical_id"])
    op.create_index("ix_appointments_status", "appointments", ["status"])

    op.create_table(
        "appointment_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("appointment_id", sa.Uuid(), nullable=False),
        sa.Column("sender_medical_id", sa.String(length=32), nullable=False),
        sa.Column("sender_name", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(
        "ix_appointment_messages_appointment_id_id",
        "appointment_messages",
        ["appointment_id", "id"],
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index(
        "ix_appointment_messages_appointment_id_id", table_name="appointment_messages"
    )
    op.drop_table("appointment_messages")

    op.drop_index("ix_appointments_status", table_name="appointments")
    op.drop_index("ix_appointments_patient_medical_id", table_name="appointments")
    op.drop_index("ix_appointments_doctor_medical_id", table_name="appointments")
    op.drop_table("appointments")
