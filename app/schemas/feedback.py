"""Feedback schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class FeedbackCreate(BaseModel):
    """Schema for rating a completed appointment."""

    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(None, max_length=1000)


class FeedbackResponse(BaseModel):
    """Schema for feedback response."""

    id: UUID
    appointment_id: UUID
    patient_medical_id: str
    doctor_medical_id: str
    rating: int
    comment: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
