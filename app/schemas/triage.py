"""Symptom triage schemas."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from app.config import settings


def strip_symptoms(v: str) -> str:
    """Reject whitespace-only symptom descriptions."""
    if not v.strip():
        raise ValueError("Symptoms must not be blank")
    return v.strip()


class UrgencyLevel(str, Enum):
    """Urgency vocabulary shared by the triage service and appointment records."""

    ROUTINE = "Routine"
    SAME_DAY = "Same Day"
    URGENT = "Urgent"
    EMERGENCY = "Emergency"


class TriageResult(BaseModel):
    """Normalized outcome of one symptom analysis."""

    severity_score: float = Field(..., ge=0, le=10)
    urgency: UrgencyLevel
    recommended_action: str = ""
    formatted_message: str


class SymptomCheckRequest(BaseModel):
    """Schema for submitting free-text symptoms."""

    symptoms: str = Field(..., min_length=1, max_length=settings.symptoms_max_length)

    @field_validator("symptoms")
    @classmethod
    def validate_symptoms(cls, v: str) -> str:
        return strip_symptoms(v)


class SymptomCheckResponse(BaseModel):
    """Schema for the symptom check response."""

    message: str
    severity_score: float
    urgency: UrgencyLevel
    recommended_action: str
