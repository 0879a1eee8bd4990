"""User model definition using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    String,
    Table,
    Text,
    Uuid,
)

from app.models.base import metadata

users = Table(
    "users",
    metadata,
    # Internal ID (for joins & performance)
    Column("id", Uuid, primary_key=True),
    # Business key shared with the identity service (e.g. "DOC001")
    Column("medical_id", String(32), nullable=False, unique=True, index=True),
    Column("email", Text, nullable=False, index=True),
    Column("full_name", Text, nullable=False),
    Column("role", String(20), nullable=False, default="patient"),
    # Doctors only
    Column("specialization", String(200)),
    # Account state
    Column("is_active", Boolean, nullable=False, default=True),
    # Audit
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)
