"""Create appointment_feedback table.

Revision ID: 003
Revises: 002
Create Date: 2026-10-17 00:20:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "appointment_feedback",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("appointment_id", sa.Uuid(), nullable=False),
        sa.Column("patient_medical_id", sa.String(length=32), nullable=False),
        sa.Column("doctor_medical_id", sa.String(length=32), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="appointment_feedback_rating_check"),
        sa.ForeignKeyConstraint(["appointment_id"], ["appointments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("appointment_id", name="uq_appointment_feedback_appointment_id"),
    )

    op.create_index(
        "ix_appointment_feedback_doctor_medical_id",
        "appointment_feedback",
        ["doctor_medical_id"],
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("ix_appointment_feedback_doctor_medical_id", table_name="appointment_feedback")
    op.drop_table("appointment_feedback")
