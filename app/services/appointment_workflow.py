"""
Appointment status rules.

Pure functions with no database access. The appointment service calls them
before every write so that a rejected change never reaches storage.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from app.core.exceptions import (
    ACTION_WORDING,
    ForbiddenException,
    InvalidTransitionException,
    ValidationException,
)
from app.schemas.appointments import (
    AppointmentApprove,
    AppointmentReject,
    AppointmentStatus,
    MeetingType,
)
from app.schemas.triage import UrgencyLevel
from app.schemas.users import UserRole

MIN_URGENCY_SCORE = 0
MAX_URGENCY_SCORE = 10

TERMINAL_STATUSES = frozenset(
    {
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
    }
)
OPEN_STATUSES = frozenset(set(AppointmentStatus) - TERMINAL_STATUSES)


class AppointmentAction(str, Enum):
    """Operations that the workflow governs."""

    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    COMPLETE = "complete"
    MESSAGE = "message"
    UPDATE_TRIAGE = "update_triage"


class Party(str, Enum):
    """Which side of the appointment an actor is on."""

    DOCTOR = "doctor"
    PATIENT = "patient"


@dataclass(frozen=True)
class Rule:
    """Where an action may start, where it ends, and who may trigger it."""

    allowed_from: frozenset[AppointmentStatus]
    target: AppointmentStatus | None
    parties: frozenset[Party]


BOTH_PARTIES = frozenset({Party.DOCTOR, Party.PATIENT})

RULES: dict[AppointmentAction, Rule] = {
    AppointmentAction.APPROVE: Rule(
        frozenset({AppointmentStatus.PENDING}),
        AppointmentStatus.APPROVED,
        frozenset({Party.DOCTOR}),
    ),
    AppointmentAction.REJECT: Rule(
        frozenset({AppointmentStatus.PENDING}),
        AppointmentStatus.REJECTED,
        frozenset({Party.DOCTOR}),
    ),
    AppointmentAction.CANCEL: Rule(
        frozenset({AppointmentStatus.PENDING, AppointmentStatus.APPROVED}),
        AppointmentStatus.CANCELLED,
        BOTH_PARTIES,
    ),
    AppointmentAction.COMPLETE: Rule(
        frozenset({AppointmentStatus.APPROVED}),
        AppointmentStatus.COMPLETED,
        frozenset({Party.DOCTOR}),
    ),
    AppointmentAction.MESSAGE: Rule(OPEN_STATUSES, None, BOTH_PARTIES),
    AppointmentAction.UPDATE_TRIAGE: Rule(
        frozenset({AppointmentStatus.PENDING}),
        None,
        frozenset({Party.PATIENT}),
    ),
}


def resolve_party(appointment: Mapping[str, Any], user: Mapping[str, Any]) -> Party:
    """
    Work out which side of the appointment the user is on.

    Raises:
        ForbiddenException: If the user is neither the doctor nor the patient
    """
    medical_id = user["medical_id"]
    if user.get("role") == UserRole.DOCTOR.value and medical_id == appointment["doctor_medical_id"]:
        return Party.DOCTOR
    if medical_id == appointment["patient_medical_id"]:
        return Party.PATIENT
    raise ForbiddenException("Access denied to this appointment")


def check_transition(
    current_status: str | AppointmentStatus,
    action: AppointmentAction,
    party: Party,
) -> AppointmentStatus | None:
    """
    Validate an action against the current status and the acting party.

    Returns:
        The resulting status, or None when the action leaves status unchanged

    Raises:
        ForbiddenException: If this party may not perform the action
        InvalidTransitionException: If the action is illegal from this status
    """
    rule = RULES[action]
    status = AppointmentStatus(current_status)

    if party not in rule.parties:
        allowed = " or ".join(sorted(p.value for p in rule.parties))
        wording = ACTION_WORDING.get(action.value, action.value)
        raise ForbiddenException(f"Only the {allowed} may {wording} this appointment")
    if status not in rule.allowed_from:
        raise InvalidTransitionException(status.value, action.value)
    return rule.target


def validate_urgency(
    urgency_level: str | None,
    urgency_score: float | None,
    from_symptom_checker: bool,
) -> None:
    """
    Urgency gate, evaluated against the proposed post-write values.

    Raises:
        ValidationException: On an unknown level, an out-of-range score, or a
            non-Routine level without symptom checker provenance
    """
    try:
        level = UrgencyLevel(urgency_level)
    except ValueError:
        raise ValidationException(
            f"Urgency level must be one of: {', '.join(u.value for u in UrgencyLevel)}"
        ) from None

    if urgency_score is None or not (MIN_URGENCY_SCORE <= urgency_score <= MAX_URGENCY_SCORE):
        raise ValidationException(
            f"Urgency score must be between {MIN_URGENCY_SCORE} and {MAX_URGENCY_SCORE}"
        )

    if level != UrgencyLevel.ROUTINE and not from_symptom_checker:
        raise ValidationException("Urgency level can only be set via Symptom Checker assessment")


def coerce_unverified_urgency(
    urgency_level: str | None,
    urgency_score: float | None,
    from_symptom_checker: bool,
) -> tuple[str, float]:
    """
    Booking-time normalization of client-supplied urgency.

    Without symptom checker provenance the submitted values are discarded.
    With it, missing values fall back to the defaults.
    """
    if not from_symptom_checker:
        return UrgencyLevel.ROUTINE.value, 0
    level = urgency_level if urgency_level is not None else UrgencyLevel.ROUTINE.value
    score = urgency_score if urgency_score is not None else 0
    return level, score


def validate_meeting(meeting_type: str, video_call_link: str | None, status: str) -> None:
    """
    Meeting link rule.

    Offline appointments never carry a link; online ones need one once approved.

    Raises:
        ValidationException: If the rule is violated
    """
    if meeting_type == MeetingType.OFFLINE.value and video_call_link:
        raise ValidationException("Video call link is only allowed for online appointments")
    if (
        meeting_type == MeetingType.ONLINE.value
        and status == AppointmentStatus.APPROVED.value
        and not video_call_link
    ):
        raise ValidationException("Online appointments require a video call link")


def approval_changes(
    appointment: Mapping[str, Any],
    data: AppointmentApprove,
    now: datetime,
) -> dict[str, Any]:
    """Column values written when a doctor approves a pending request."""
    video_call_link = data.video_call_link or appointment.get("video_call_link")
    validate_meeting(
        appointment["meeting_type"],
        video_call_link,
        AppointmentStatus.APPROVED.value,
    )
    return {
        "status": AppointmentStatus.APPROVED.value,
        "scheduled_date": data.scheduled_date or appointment["preferred_date"],
        "scheduled_time": data.scheduled_time or appointment["preferred_time"],
        "video_call_link": video_call_link,
        "doctor_response_message": data.message,
        "doctor_responded_at": now,
        "updated_at": now,
    }


def rejection_changes(data: AppointmentReject, now: datetime) -> dict[str, Any]:
    """Column values written when a doctor rejects a pending request."""
    return {
        "status": AppointmentStatus.REJECTED.value,
        "doctor_response_message": data.message,
        "doctor_responded_at": now,
        "updated_at": now,
    }


def cancellation_changes(cancelled_by: str, now: datetime) -> dict[str, Any]:
    """Column values written when either party cancels."""
    return {
        "status": AppointmentStatus.CANCELLED.value,
        "cancelled_by": cancelled_by,
        "cancelled_at": now,
        "updated_at": now,
    }


def completion_changes(now: datetime) -> dict[str, Any]:
    """Column values written when the doctor marks the visit as done."""
    return {
        "status": AppointmentStatus.COMPLETED.value,
        "completed_at": now,
        "updated_at": now,
    }
