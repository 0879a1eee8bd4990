"""Appointment feedback endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from app.dependencies import CurrentUser, DatabaseSession
from app.schemas.feedback import FeedbackCreate, FeedbackResponse
from app.services.feedback_service import FeedbackService

router = APIRouter()


@router.post(
    "/{appointment_id}/feedback",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Rate a completed appointment",
)
async def submit_feedback(
    appointment_id: UUID,
    data: FeedbackCreate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> FeedbackResponse:
    """
    Leave feedback for a completed appointment.

    Only the patient of record may rate, and only once.
    """
    service = FeedbackService(db)
    return await service.submit_feedback(appointment_id, current_user, data)


@router.get(
    "/{appointment_id}/feedback",
    response_model=FeedbackResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment feedback",
)
async def get_feedback(
    appointment_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> FeedbackResponse:
    """Get the feedback left for an appointment."""
    service = FeedbackService(db)
    return await service.get_feedback(appointment_id, current_user)
