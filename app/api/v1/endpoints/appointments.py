"""Appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import CurrentUser, DatabaseSession
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
from app.services.appointment_service import AppointmentService

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Book an appointment request for the authenticated patient.

    Urgency fields are kept only when ``from_symptom_checker`` is true.
    """
    service = AppointmentService(db)
    return await service.create_appointment(current_user, data)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List appointments",
)
async def list_appointments(
    current_user: CurrentUser,
    db: DatabaseSession,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List the caller's appointments.

    Doctors get requests addressed to them; patients get their bookings.
    """
    filters = AppointmentFilters(
        status=status_filter,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )

    service = AppointmentService(db)
    return await service.list_appointments(current_user, filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Get a specific appointment, including its message thread."""
    service = AppointmentService(db)
    return await service.get_appointment(appointment_id, current_user)


@router.put(
    "/{appointment_id}/approve",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Approve appointment",
)
async def approve_appointment(
    appointment_id: UUID,
    data: AppointmentApprove,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Approve a pending request (doctor only).

    The scheduled slot defaults to the patient's preferred date and time
    unless the doctor counter-offers.
    """
    service = AppointmentService(db)
    return await service.approve_appointment(appointment_id, current_user, data)


@router.put(
    "/{appointment_id}/reject",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Reject appointment",
)
async def reject_appointment(
    appointment_id: UUID,
    data: AppointmentReject,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Reject a pending request (doctor only)."""
    service = AppointmentService(db)
    return await service.reject_appointment(appointment_id, current_user, data)


@router.put(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Cancel a pending or approved appointment (either party)."""
    service = AppointmentService(db)
    return await service.cancel_appointment(appointment_id, current_user)


@router.put(
    "/{appointment_id}/complete",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Complete appointment",
)
async def complete_appointment(
    appointment_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Mark an approved appointment as completed (doctor only)."""
    service = AppointmentService(db)
    return await service.complete_appointment(appointment_id, current_user)


@router.patch(
    "/{appointment_id}/triage",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment urgency",
)
async def update_appointment_triage(
    appointment_id: UUID,
    data: AppointmentTriageUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Attach symptom checker output to a pending request (patient only).

    Non-Routine urgency is refused unless the record or this update carries
    symptom checker provenance.
    """
    service = AppointmentService(db)
    return await service.update_triage(appointment_id, current_user, data)


@router.post(
    "/{appointment_id}/messages",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a message",
)
async def add_message(
    appointment_id: UUID,
    data: MessageCreate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Append a message to the appointment's negotiation thread."""
    service = AppointmentService(db)
    return await service.add_message(appointment_id, current_user, data)


@router.get(
    "/{appointment_id}/messages",
    response_model=list[ThreadMessage],
    status_code=status.HTTP_200_OK,
    summary="List messages",
)
async def list_messages(
    appointment_id: UUID,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> list[ThreadMessage]:
    """Get the negotiation thread in posting order."""
    service = AppointmentService(db)
    return await service.list_messages(appointment_id, current_user)
