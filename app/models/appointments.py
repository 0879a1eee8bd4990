"""Appointment request tables using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Time,
    Uuid,
)

from app.models.base import metadata

# Appointment requests
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True),
    # Parties (business keys, immutable after creation)
    Column("doctor_medical_id", String(32), nullable=False, index=True),
    Column("patient_medical_id", String(32), nullable=False, index=True),
    # Snapshot fields (denormalized at creation, never re-synced)
    Column("doctor_name", Text, nullable=False),
    Column("doctor_email", Text, nullable=True),
    Column("patient_name", Text, nullable=False),
    Column("patient_email", Text, nullable=True),
    # Scheduling
    Column("preferred_date", Date, nullable=False),
    Column("preferred_time", Time, nullable=False),
    Column("scheduled_date", Date, nullable=True),
    Column("scheduled_time", Time, nullable=True),
    Column("meeting_type", String(10), nullable=False, default="offline"),
    Column("video_call_link", Text, nullable=True),
    # Clinical input
    Column("symptoms", Text, nullable=False),
    # Triage
    Column("urgency_level", String(20), nullable=False, default="Routine"),
    Column("urgency_score", Float, nullable=False, default=0),
    Column("from_symptom_checker", Boolean, nullable=False, default=False),
    # Status management
    Column("status", String(20), nullable=False, default="pending", index=True),
    Column("doctor_response_message", Text, nullable=True),
    Column("doctor_responded_at", DateTime(timezone=True), nullable=True),
    Column("cancelled_by", String(32), nullable=True),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'approved', 'rejected', 'cancelled', 'completed')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "meeting_type IN ('online', 'offline')",
        name="appointments_meeting_type_check",
    ),
    CheckConstraint(
        "urgency_level IN ('Routine', 'Same Day', 'Urgent', 'Emergency')",
        name="appointments_urgency_level_check",
    ),
    CheckConstraint(
        "urgency_score >= 0 AND urgency_score <= 10",
        name="appointments_urgency_score_check",
    ),
    CheckConstraint(
        "urgency_level = 'Routine' OR from_symptom_checker",
        name="appointments_urgency_gate_check",
    ),
)

# Negotiation thread, append-only
appointment_messages = Table(
    "appointment_messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "appointment_id",
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("sender_medical_id", String(32), nullable=False),
    Column("sender_name", Text, nullable=False),
    Column("message", Text, nullable=False),
    Column("sent_at", DateTime(timezone=True), nullable=False),
    Index("ix_appointment_messages_appointment_id_id", "appointment_id", "id"),
)
