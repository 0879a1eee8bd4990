"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.config import settings
from app.schemas.triage import UrgencyLevel, strip_symptoms


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class MeetingType(str, Enum):
    """Meeting type enumeration."""

    ONLINE = "online"
    OFFLINE = "offline"


class AppointmentCreate(BaseModel):
    """
    Schema for booking a new appointment.

    Urgency fields are accepted as submitted and only kept when
    ``from_symptom_checker`` is true; otherwise the booking is stored as
    Routine with a score of 0.
    """

    doctor_medical_id: str = Field(..., min_length=1, max_length=32)
    patient_medical_id: str | None = Field(None, min_length=1, max_length=32)
    preferred_date: date
    preferred_time: time
    symptoms: str = Field(..., min_length=1, max_length=settings.symptoms_max_length)
    meeting_type: MeetingType = MeetingType.OFFLINE
    video_call_link: str | None = Field(None, max_length=500)
    urgency_level: str | None = None
    urgency_score: float | None = None
    from_symptom_checker: bool = False

    @field_validator("symptoms")
    @classmethod
    def validate_symptoms(cls, v: str) -> str:
        return strip_symptoms(v)


class AppointmentApprove(BaseModel):
    """Schema for a doctor approving a request, optionally with a counter-offer."""

    message: str | None = Field(None, max_length=1000)
    scheduled_date: date | None = None
    scheduled_time: time | None = None
    video_call_link: str | None = Field(None, max_length=500)


class AppointmentReject(BaseModel):
    """Schema for a doctor rejecting a request."""

    message: str = Field(..., min_length=1, max_length=1000)


class AppointmentTriageUpdate(BaseModel):
    """Schema for attaching triage output to a pending request."""

    urgency_level: str
    urgency_score: float
    from_symptom_checker: bool = False


class MessageCreate(BaseModel):
    """Schema for appending to the negotiation thread."""

    message: str = Field(..., min_length=1, max_length=2000)
    sender: str | None = Field(None, max_length=32, description="Sender medical ID")


class ThreadMessage(BaseModel):
    """One negotiation thread entry."""

    id: int
    sender_medical_id: str
    sender_name: str
    message: str
    sent_at: datetime

    model_config = {"from_attributes": True}


class DoctorResponse(BaseModel):
    """The doctor's decision note."""

    message: str | None = None
    responded_at: datetime


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    doctor_medical_id: str
    patient_medical_id: str
    doctor_name: str
    doctor_email: str | None = None
    patient_name: str
    patient_email: str | None = None
    preferred_date: date
    preferred_time: time
    scheduled_date: date | None = None
    scheduled_time: time | None = None
    meeting_type: MeetingType
    video_call_link: str | None = None
    symptoms: str
    urgency_level: UrgencyLevel
    urgency_score: float
    from_symptom_checker: bool
    status: AppointmentStatus
    doctor_response: DoctorResponse | None = None
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None
    messages: list[ThreadMessage] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    from_date: date | None = None
    to_date: date | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
