"""Feedback service for rating completed appointments."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException, ForbiddenException, NotFoundException
from app.models.appointments import appointments
from app.models.feedback import appointment_feedback
from app.schemas.appointments import AppointmentStatus
from app.schemas.feedback import FeedbackCreate, FeedbackResponse
from app.services.appointment_workflow import Party, resolve_party

logger = structlog.get_logger()


class FeedbackService:
    """Service for appointment feedback (at most one entry per appointment)."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _get_appointment(self, appointment_id: UUID) -> dict[str, Any]:
        result = await self.db.execute(
            select(appointments).where(appointments.c.id == appointment_id)
        )
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Appointment not found")
        return dict(row)

    async def submit_feedback(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
        data: FeedbackCreate,
    ) -> FeedbackResponse:
        """
        Record the patient's rating of a completed appointment.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the user is not the patient of record
            ConflictException: If the appointment is not completed or was
                already rated
        """
        appointment = await self._get_appointment(appointment_id)
        if resolve_party(appointment, current_user) != Party.PATIENT:
            raise ForbiddenException("Only the patient can leave feedback")

        if appointment["status"] != AppointmentStatus.COMPLETED.value:
            raise ConflictException("Feedback can only be left for completed appointments")

        values = {
            "id": uuid4(),
            "appointment_id": appointment_id,
            "patient_medical_id": appointment["patient_medical_id"],
            "doctor_medical_id": appointment["doctor_medical_id"],
            "rating": data.rating,
            "comment": data.comment,
            "created_at": datetime.now(UTC),
        }

        try:
            result = await self.db.execute(
                insert(appointment_feedback).values(**values).returning(appointment_feedback)
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("Feedback already submitted for this appointment") from None

        row = result.mappings().one()
        logger.info(
            "feedback_submitted",
            appointment_id=str(appointment_id),
            doctor_medical_id=appointment["doctor_medical_id"],
            rating=data.rating,
        )
        return FeedbackResponse.model_validate(dict(row))

    async def get_feedback(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
    ) -> FeedbackResponse:
        """
        Get feedback for an appointment.

        Raises:
            NotFoundException: If the appointment or its feedback does not exist
            ForbiddenException: If the user is not a party to the appointment
        """
        appointment = await self._get_appointment(appointment_id)
        resolve_party(appointment, current_user)

        result = await self.db.execute(
            select(appointment_feedback).where(
                appointment_feedback.c.appointment_id == appointment_id
            )
        )
        row = result.mappings().first()
        if not row:
            raise NotFoundException("No feedback for this appointment")
        return FeedbackResponse.model_validate(dict(row))
