"""Appointment service for business logic."""

from collections import defaultdict
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from app.models.appointments import appointment_messages, appointments
from app.schemas.appointments import (
    AppointmentApprove,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReject,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentTriageUpdate,
    MessageCreate,
    ThreadMessage,
)
from app.schemas.users import UserRole
from app.services.appointment_workflow import (
    RULES,
    AppointmentAction,
    Party,
    approval_changes,
    cancellation_changes,
    check_transition,
    coerce_unverified_urgency,
    completion_changes,
    rejection_changes,
    resolve_party,
    validate_meeting,
    validate_urgency,
)
from app.services.user_service import UserService

logger = structlog.get_logger()

ChangeBuilder = Callable[[dict[str, Any], Party, datetime], dict[str, Any]]


def utcnow() -> datetime:
    """Current UTC time."""
    return datetime.now(UTC)


def to_response(row: dict[str, Any], messages: list[dict[str, Any]]) -> AppointmentResponse:
    """Assemble the API view of a stored appointment and its thread."""
    data = dict(row)
    responded_at = data.pop("doctor_responded_at", None)
    response_message = data.pop("doctor_response_message", None)
    data["doctor_response"] = (
        {"message": response_message, "responded_at": responded_at} if responded_at else None
    )
    data["messages"] = [ThreadMessage.model_validate(m) for m in messages]
    return AppointmentResponse.model_validate(data)


class AppointmentService:
    """Service for managing appointment requests and their workflow."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _get_row(self, appointment_id: UUID) -> dict[str, Any]:
        stmt = select(appointments).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Appointment not found")
        return dict(row)

    async def _get_messages(self, appointment_ids: list[UUID]) -> dict[UUID, list[dict[str, Any]]]:
        grouped: dict[UUID, list[dict[str, Any]]] = defaultdict(list)
        if not appointment_ids:
            return grouped

        stmt = (
            select(appointment_messages)
            .where(appointment_messages.c.appointment_id.in_(appointment_ids))
            .order_by(appointment_messages.c.id)
        )
        result = await self.db.execute(stmt)
        for row in result.mappings().all():
            grouped[row["appointment_id"]].append(dict(row))
        return grouped

    async def _respond(self, row: dict[str, Any]) -> AppointmentResponse:
        messages = await self._get_messages([row["id"]])
        return to_response(row, messages[row["id"]])

    async def create_appointment(
        self,
        current_user: dict[str, Any],
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Book a new appointment request.

        Urgency values only survive when the booking came from the symptom
        checker; otherwise they are stored as Routine with score 0.

        Args:
            current_user: Authenticated patient
            data: Appointment creation data

        Returns:
            Created appointment in ``pending`` status

        Raises:
            ForbiddenException: If booking on behalf of another patient
            ValidationException: If the doctor is booking with themselves
            NotFoundException: If the doctor does not exist
            ValidationException: If urgency or meeting fields are invalid
        """
        patient_medical_id = data.patient_medical_id or current_user["medical_id"]
        if patient_medical_id != current_user["medical_id"]:
            raise ForbiddenException("Appointments can only be booked for yourself")
        if data.doctor_medical_id == patient_medical_id:
            raise ValidationException("Doctor and patient must be different users")

        doctor = await UserService(self.db).require_user(data.doctor_medical_id, UserRole.DOCTOR)

        urgency_level, urgency_score = coerce_unverified_urgency(
            data.urgency_level,
            data.urgency_score,
            data.from_symptom_checker,
        )
        if not data.from_symptom_checker and (
            data.urgency_level not in (None, urgency_level) or data.urgency_score not in (None, 0)
        ):
            logger.info(
                "urgency_coerced_to_routine",
                patient_medical_id=patient_medical_id,
                submitted_level=data.urgency_level,
                submitted_score=data.urgency_score,
            )

        validate_urgency(urgency_level, urgency_score, data.from_symptom_checker)
        validate_meeting(
            data.meeting_type.value,
            data.video_call_link,
            AppointmentStatus.PENDING.value,
        )

        now = utcnow()
        values = {
            "id": uuid4(),
            "doctor_medical_id": doctor["medical_id"],
            "patient_medical_id": patient_medical_id,
            "doctor_name": doctor["full_name"],
            "doctor_email": doctor["email"],
            "patient_name": current_user["full_name"],
            "patient_email": current_user["email"],
            "preferred_date": data.preferred_date,
            "preferred_time": data.preferred_time,
            "meeting_type": data.meeting_type.value,
            "video_call_link": data.video_call_link,
            "symptoms": data.symptoms,
            "urgency_level": urgency_level,
            "urgency_score": urgency_score,
            "from_symptom_checker": data.from_symptom_checker,
            "status": AppointmentStatus.PENDING.value,
            "created_at": now,
            "updated_at": now,
        }

        stmt = insert(appointments).values(**values).returning(appointments)
        result = await self.db.execute(stmt)
        await self.db.commit()

        row = dict(result.mappings().one())
        logger.info(
            "appointment_created",
            appointment_id=str(row["id"]),
            doctor_medical_id=row["doctor_medical_id"],
            urgency_level=row["urgency_level"],
            from_symptom_checker=row["from_symptom_checker"],
        )
        return to_response(row, [])

    async def get_appointment(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
    ) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the user is not a party to it
        """
        row = await self._get_row(appointment_id)
        resolve_party(row, current_user)
        return await self._respond(row)

    async def list_appointments(
        self,
        current_user: dict[str, Any],
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """
        List the user's appointments with filtering and pagination.

        Doctors see requests addressed to them, everyone else sees their own
        bookings.
        """
        if current_user["role"] == UserRole.DOCTOR.value:
            conditions = [appointments.c.doctor_medical_id == current_user["medical_id"]]
        else:
            conditions = [appointments.c.patient_medical_id == current_user["medical_id"]]

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.from_date:
            conditions.append(appointments.c.preferred_date >= filters.from_date)

        if filters.to_date:
            conditions.append(appointments.c.preferred_date <= filters.to_date)

        # Count total
        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        total_result = await self.db.execute(count_stmt)
        total = total_result.scalar() or 0

        # Get paginated results
        offset = (filters.page - 1) * filters.page_size

        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(appointments.c.created_at.desc())
            .limit(filters.page_size)
            .offset(offset)
        )

        result = await self.db.execute(stmt)
        rows = [dict(row) for row in result.mappings().all()]
        messages = await self._get_messages([row["id"] for row in rows])

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[to_response(row, messages[row["id"]]) for row in rows],
        )

    async def _apply(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
        action: AppointmentAction,
        build_changes: ChangeBuilder,
    ) -> AppointmentResponse:
        """
        Validate and persist one workflow step.

        The write is a single conditional UPDATE guarded on the allowed source
        statuses; if another request moved the record first, nothing is
        written and the step is rejected.
        """
        row = await self._get_row(appointment_id)
        party = resolve_party(row, current_user)
        check_transition(row["status"], action, party)

        now = utcnow()
        changes = build_changes(row, party, now)

        allowed_from = [status.value for status in RULES[action].allowed_from]
        stmt = (
            update(appointments)
            .where(
                appointments.c.id == appointment_id,
                appointments.c.status.in_(allowed_from),
            )
            .values(**changes)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        updated = result.mappings().first()

        if not updated:
            await self.db.rollback()
            current = await self._get_row(appointment_id)
            raise InvalidTransitionException(current["status"], action.value)

        await self.db.commit()
        updated = dict(updated)

        logger.info(
            "appointment_transitioned",
            appointment_id=str(appointment_id),
            action=action.value,
            from_status=row["status"],
            to_status=updated["status"],
            actor=current_user["medical_id"],
        )
        return await self._respond(updated)

    async def approve_appointment(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
        data: AppointmentApprove,
    ) -> AppointmentResponse:
        """Doctor approves a pending request, confirming or counter-offering the slot."""
        return await self._apply(
            appointment_id,
            current_user,
            AppointmentAction.APPROVE,
            lambda row, party, now: approval_changes(row, data, now),
        )

    async def reject_appointment(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
        data: AppointmentReject,
    ) -> AppointmentResponse:
        """Doctor declines a pending request."""
        return await self._apply(
            appointment_id,
            current_user,
            AppointmentAction.REJECT,
            lambda row, party, now: rejection_changes(data, now),
        )

    async def cancel_appointment(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
    ) -> AppointmentResponse:
        """Either party cancels a pending or approved appointment."""
        return await self._apply(
            appointment_id,
            current_user,
            AppointmentAction.CANCEL,
            lambda row, party, now: cancellation_changes(current_user["medical_id"], now),
        )

    async def complete_appointment(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
    ) -> AppointmentResponse:
        """Doctor marks an approved appointment as held."""
        return await self._apply(
            appointment_id,
            current_user,
            AppointmentAction.COMPLETE,
            lambda row, party, now: completion_changes(now),
        )

    async def update_triage(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
        data: AppointmentTriageUpdate,
    ) -> AppointmentResponse:
        """
        Attach symptom checker output to a pending request.

        Raises:
            ValidationException: If a non-Routine level is set without
                symptom checker provenance on the record or in the update
        """

        def build(row: dict[str, Any], party: Party, now: datetime) -> dict[str, Any]:
            from_symptom_checker = bool(row["from_symptom_checker"] or data.from_symptom_checker)
            validate_urgency(data.urgency_level, data.urgency_score, from_symptom_checker)
            return {
                "urgency_level": data.urgency_level,
                "urgency_score": data.urgency_score,
                "from_symptom_checker": from_symptom_checker,
                "updated_at": now,
            }

        return await self._apply(
            appointment_id, current_user, AppointmentAction.UPDATE_TRIAGE, build
        )

    async def add_message(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
        data: MessageCreate,
    ) -> AppointmentResponse:
        """
        Append a message to the negotiation thread.

        Status is unchanged; ``updated_at`` is bumped in the same transaction.

        Raises:
            ForbiddenException: If the user is not a party or posts as someone else
            InvalidTransitionException: If the appointment is closed
        """
        row = await self._get_row(appointment_id)
        party = resolve_party(row, current_user)
        check_transition(row["status"], AppointmentAction.MESSAGE, party)

        if data.sender and data.sender != current_user["medical_id"]:
            raise ForbiddenException("Messages can only be sent as yourself")

        now = utcnow()
        open_statuses = [s.value for s in RULES[AppointmentAction.MESSAGE].allowed_from]
        touch = (
            update(appointments)
            .where(
                appointments.c.id == appointment_id,
                appointments.c.status.in_(open_statuses),
            )
            .values(updated_at=now)
            .returning(appointments)
        )
        result = await self.db.execute(touch)
        updated = result.mappings().first()

        if not updated:
            await self.db.rollback()
            current = await self._get_row(appointment_id)
            raise InvalidTransitionException(current["status"], AppointmentAction.MESSAGE.value)
        updated = dict(updated)

        await self.db.execute(
            insert(appointment_messages).values(
                appointment_id=appointment_id,
                sender_medical_id=current_user["medical_id"],
                sender_name=current_user["full_name"],
                message=data.message,
                sent_at=now,
            )
        )
        await self.db.commit()

        logger.info(
            "appointment_message_added",
            appointment_id=str(appointment_id),
            sender=current_user["medical_id"],
            party=party.value,
        )
        return await self._respond(updated)

    async def list_messages(
        self,
        appointment_id: UUID,
        current_user: dict[str, Any],
    ) -> list[ThreadMessage]:
        """Get the negotiation thread in posting order."""
        row = await self._get_row(appointment_id)
        resolve_party(row, current_user)
        messages = await self._get_messages([appointment_id])
        return [ThreadMessage.model_validate(m) for m in messages[appointment_id]]
