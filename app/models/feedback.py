"""Appointment feedback table using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    Uuid,
)

from app.models.base import metadata

appointment_feedback = Table(
    "appointment_feedback",
    metadata,
    Column("id", Uuid, primary_key=True),
    # At most one feedback entry per appointment
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("patient_medical_id", String(32), nullable=False),
    Column("doctor_medical_id", String(32), nullable=False, index=True),
    Column("rating", Integer, nullable=False),
    Column("comment", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("rating >= 1 AND rating <= 5", name="appointment_feedback_rating_check"),
)
