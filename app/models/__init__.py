"""Database models."""

from app.models.appointments import appointment_messages, appointments
from app.models.base import metadata
from app.models.feedback import appointment_feedback
from app.models.users import users

__all__ = [
    "appointment_feedback",
    "appointment_messages",
    "appointments",
    "metadata",
    "users",
]
