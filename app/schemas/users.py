"""User schemas for response serialization."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class UserRole(str, Enum):
    """User role enumeration."""

    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class UserResponse(BaseModel):
    """User schema for API responses."""

    id: UUID
    medical_id: str
    email: str
    full_name: str
    role: UserRole
    specialization: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DoctorSummary(BaseModel):
    """Doctor entry for the booking form."""

    medical_id: str
    full_name: str
    specialization: str | None = None

    model_config = {"from_attributes": True}
