"""Tests for appointment endpoints."""

from datetime import date, datetime, timedelta

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_create_appointment(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
    doctor: dict,
    patient: dict,
) -> None:
    """Test booking an appointment."""
    response = await client.post(
        "/api/v1/appointments/",
        json=sample_appointment_data,
        headers=patient_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["doctor_medical_id"] == doctor["medical_id"]
    assert data["patient_medical_id"] == patient["medical_id"]
    assert data["doctor_name"] == doctor["full_name"]
    assert data["patient_name"] == patient["full_name"]
    assert data["patient_email"] == patient["email"]
    assert data["urgency_level"] == "Routine"
    assert data["urgency_score"] == 0
    assert data["from_symptom_checker"] is False
    assert data["scheduled_date"] is None
    assert data["doctor_response"] is None
    assert data["messages"] == []
    assert data["created_at"] == data["updated_at"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("urgency_level", "urgency_score"),
    [
        ("Emergency", 10),
        ("Urgent", 7),
        ("Same Day", 5),
        ("Non-Urgent", 2),
        (None, 9),
    ],
)
async def test_unverified_urgency_is_stored_as_routine(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
    urgency_level: str | None,
    urgency_score: float,
) -> None:
    """Bookings not from the symptom checker always store Routine / 0."""
    payload = {
        **sample_appointment_data,
        "urgency_level": urgency_level,
        "urgency_score": urgency_score,
        "from_symptom_checker": False,
    }

    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["urgency_level"] == "Routine"
    assert data["urgency_score"] == 0


@pytest.mark.asyncio
async def test_symptom_checker_booking_keeps_urgency(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
) -> None:
    """Bookings flagged as coming from the symptom checker keep their urgency."""
    payload = {
        **sample_appointment_data,
        "urgency_level": "Urgent",
        "urgency_score": 7,
        "from_symptom_checker": True,
    }

    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["urgency_level"] == "Urgent"
    assert data["urgency_score"] == 7
    assert data["from_symptom_checker"] is True


@pytest.mark.asyncio
async def test_symptom_checker_booking_with_invalid_score(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
) -> None:
    """Verified bookings are still range-checked."""
    payload = {
        **sample_appointment_data,
        "urgency_level": "Urgent",
        "urgency_score": 12,
        "from_symptom_checker": True,
    }

    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationException"


@pytest.mark.asyncio
async def test_create_with_unknown_doctor(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
) -> None:
    """Booking with a doctor that does not exist is a 404."""
    payload = {**sample_appointment_data, "doctor_medical_id": "DOC404"}

    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_with_patient_as_doctor(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
    other_patient: dict,
) -> None:
    """The doctor ID must belong to a doctor."""
    payload = {**sample_appointment_data, "doctor_medical_id": other_patient["medical_id"]}

    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cannot_book_for_someone_else(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
    other_patient: dict,
) -> None:
    """A patient can only book for themselves."""
    payload = {**sample_appointment_data, "patient_medical_id": other_patient["medical_id"]}

    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_doctor_cannot_book_with_themselves(
    client: AsyncClient,
    doctor_headers: dict,
    sample_appointment_data: dict,
) -> None:
    """Doctor and patient must be different people."""
    response = await client.post(
        "/api/v1/appointments/",
        json=sample_appointment_data,
        headers=doctor_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationException"


@pytest.mark.asyncio
async def test_offline_appointment_rejects_video_link(
    client: AsyncClient,
    patient_headers: dict,
    sample_appointment_data: dict,
) -> None:
    """Offline bookings cannot carry a video call link."""
    payload = {**sample_appointment_data, "video_call_link": "https://meet.example.com/abc"}

    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_invalid_appointment_data(
    client: AsyncClient,
    patient_headers: dict,
    doctor: dict,
) -> None:
    """Missing and malformed fields fail request validation."""
    invalid_data = {
        "doctor_medical_id": doctor["medical_id"],
        "preferred_date": "not-a-date",
        "preferred_time": "10:00",
        "symptoms": "   ",
    }

    response = await client.post(
        "/api/v1/appointments/",
        json=invalid_data,
        headers=patient_headers,
    )
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_unauthorized_access(client: AsyncClient) -> None:
    """Test that endpoints require authentication."""
    response = await client.get("/api/v1/appointments/")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_appointment(
    client: AsyncClient,
    patient_headers: dict,
    doctor_headers: dict,
    pending_appointment: dict,
) -> None:
    """Both parties can read the appointment."""
    for headers in (patient_headers, doctor_headers):
        response = await client.get(
            f"/api/v1/appointments/{pending_appointment['id']}",
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["id"] == pending_appointment["id"]


@pytest.mark.asyncio
async def test_get_appointment_as_stranger(
    client: AsyncClient,
    pending_appointment: dict,
    other_patient_headers: dict,
    other_doctor_headers: dict,
) -> None:
    """Users who are not a party cannot read the appointment."""
    for headers in (other_patient_headers, other_doctor_headers):
        response = await client.get(
            f"/api/v1/appointments/{pending_appointment['id']}",
            headers=headers,
        )
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_missing_appointment(client: AsyncClient, patient_headers: dict) -> None:
    """Unknown IDs are a 404."""
    response = await client.get(
        "/api/v1/appointments/00000000-0000-0000-0000-000000000000",
        headers=patient_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundException"


@pytest.mark.asyncio
async def test_list_appointments(
    client: AsyncClient,
    patient_headers: dict,
    doctor_headers: dict,
    pending_appointment: dict,
    other_doctor_headers: dict,
) -> None:
    """Patients see their bookings, doctors see requests addressed to them."""
    for headers in (patient_headers, doctor_headers):
        response = await client.get("/api/v1/appointments/", headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == pending_appointment["id"]

    response = await client.get("/api/v1/appointments/", headers=other_doctor_headers)
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_list_appointments_status_filter(
    client: AsyncClient,
    patient_headers: dict,
    approved_appointment: dict,
    sample_appointment_data: dict,
) -> None:
    """The status filter narrows the list."""
    await client.post(
        "/api/v1/appointments/",
        json=sample_appointment_data,
        headers=patient_headers,
    )

    response = await client.get(
        "/api/v1/appointments/",
        params={"status": "approved"},
        headers=patient_headers,
    )
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == approved_appointment["id"]

    response = await client.get("/api/v1/appointments/", headers=patient_headers)
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_approve_appointment(
    client: AsyncClient,
    doctor_headers: dict,
    pending_appointment: dict,
) -> None:
    """Approval sets the schedule and the doctor response; a repeat is refused."""
    scheduled = (date.today() + timedelta(days=3)).isoformat()

    response = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/approve",
        json={"message": "Come at 3pm instead", "scheduled_date": scheduled},
        headers=doctor_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    assert data["scheduled_date"] == scheduled
    assert data["scheduled_time"] == pending_appointment["preferred_time"]
    assert data["doctor_response"]["message"] == "Come at 3pm instead"
    assert data["doctor_response"]["responded_at"] is not None
    assert datetime.fromisoformat(data["updated_at"]) > datetime.fromisoformat(
        pending_appointment["updated_at"]
    )
    assert data["created_at"] == pending_appointment["created_at"]

    again = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/approve",
        json={},
        headers=doctor_headers,
    )
    assert again.status_code == 409
    assert again.json()["error"] == "InvalidTransitionException"


@pytest.mark.asyncio
async def test_patient_cannot_approve(
    client: AsyncClient,
    patient_headers: dict,
    pending_appointment: dict,
) -> None:
    """Approval is doctor-only."""
    response = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/approve",
        json={},
        headers=patient_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_online_approval_needs_link(
    client: AsyncClient,
    patient_headers: dict,
    doctor_headers: dict,
    sample_appointment_data: dict,
) -> None:
    """An online appointment cannot be approved without a video link."""
    created = await client.post(
        "/api/v1/appointments/",
        json={**sample_appointment_data, "meeting_type": "online"},
        headers=patient_headers,
    )
    appointment_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/appointments/{appointment_id}/approve",
        json={},
        headers=doctor_headers,
    )
    assert response.status_code == 422

    unchanged = await client.get(f"/api/v1/appointments/{appointment_id}", headers=doctor_headers)
    assert unchanged.json()["status"] == "pending"

    response = await client.put(
        f"/api/v1/appointments/{appointment_id}/approve",
        json={"video_call_link": "https://meet.example.com/room-1"},
        headers=doctor_headers,
    )
    assert response.status_code == 200
    assert response.json()["video_call_link"] == "https://meet.example.com/room-1"


@pytest.mark.asyncio
async def test_reject_appointment(
    client: AsyncClient,
    doctor_headers: dict,
    pending_appointment: dict,
) -> None:
    """Rejection records the doctor's message and is terminal."""
    response = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/reject",
        json={"message": "Please see a cardiologist"},
        headers=doctor_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "rejected"
    assert data["doctor_response"]["message"] == "Please see a cardiologist"
    assert data["scheduled_date"] is None

    response = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/approve",
        json={},
        headers=doctor_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_reject_requires_message(
    client: AsyncClient,
    doctor_headers: dict,
    pending_appointment: dict,
) -> None:
    """A rejection without a message fails validation."""
    response = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/reject",
        json={},
        headers=doctor_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_patient_cancels_approved_appointment(
    client: AsyncClient,
    patient_headers: dict,
    patient: dict,
    approved_appointment: dict,
) -> None:
    """Either party can cancel; the cancelling party is recorded."""
    response = await client.put(
        f"/api/v1/appointments/{approved_appointment['id']}/cancel",
        headers=patient_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "cancelled"
    assert data["cancelled_by"] == patient["medical_id"]
    assert data["cancelled_at"] is not None


@pytest.mark.asyncio
async def test_doctor_cancels_pending_appointment(
    client: AsyncClient,
    doctor_headers: dict,
    doctor: dict,
    pending_appointment: dict,
) -> None:
    """The doctor can cancel a pending request too."""
    response = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/cancel",
        headers=doctor_headers,
    )
    assert response.status_code == 200
    assert response.json()["cancelled_by"] == doctor["medical_id"]


@pytest.mark.asyncio
async def test_complete_appointment(
    client: AsyncClient,
    doctor_headers: dict,
    completed_appointment: dict,
) -> None:
    """Completed appointments cannot be approved again and stay completed."""
    assert completed_appointment["status"] == "completed"
    assert completed_appointment["completed_at"] is not None

    response = await client.put(
        f"/api/v1/appointments/{completed_appointment['id']}/approve",
        json={},
        headers=doctor_headers,
    )
    assert response.status_code == 409

    current = await client.get(
        f"/api/v1/appointments/{completed_appointment['id']}",
        headers=doctor_headers,
    )
    assert current.json()["status"] == "completed"


@pytest.mark.asyncio
async def test_cannot_complete_pending_appointment(
    client: AsyncClient,
    doctor_headers: dict,
    pending_appointment: dict,
) -> None:
    """Only approved appointments can be completed."""
    response = await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/complete",
        headers=doctor_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_message_thread_is_append_only(
    client: AsyncClient,
    patient_headers: dict,
    doctor_headers: dict,
    patient: dict,
    doctor: dict,
    pending_appointment: dict,
) -> None:
    """Each append adds exactly one entry and keeps earlier ones intact."""
    url = f"/api/v1/appointments/{pending_appointment['id']}/messages"
    posts = [
        (patient_headers, "Can we do the afternoon instead?"),
        (doctor_headers, "3pm works."),
        (patient_headers, "Thank you!"),
    ]

    snapshots = []
    for headers, text in posts:
        response = await client.post(url, json={"message": text}, headers=headers)
        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        snapshots.append(response.json()["messages"])

    for count, snapshot in enumerate(snapshots, start=1):
        assert len(snapshot) == count
        assert snapshot == snapshots[-1][:count]

    thread = (await client.get(url, headers=doctor_headers)).json()
    assert [m["message"] for m in thread] == [text for _, text in posts]
    assert [m["sender_medical_id"] for m in thread] == [
        patient["medical_id"],
        doctor["medical_id"],
        patient["medical_id"],
    ]
    assert thread[1]["sender_name"] == doctor["full_name"]


@pytest.mark.asyncio
async def test_message_bumps_updated_at(
    client: AsyncClient,
    patient_headers: dict,
    pending_appointment: dict,
) -> None:
    """Appending a message counts as a mutation."""
    response = await client.post(
        f"/api/v1/appointments/{pending_appointment['id']}/messages",
        json={"message": "Any update?"},
        headers=patient_headers,
    )
    assert datetime.fromisoformat(response.json()["updated_at"]) > datetime.fromisoformat(
        pending_appointment["updated_at"]
    )


@pytest.mark.asyncio
async def test_no_messages_after_cancellation(
    client: AsyncClient,
    patient_headers: dict,
    pending_appointment: dict,
) -> None:
    """The thread is closed once the appointment is cancelled."""
    await client.put(
        f"/api/v1/appointments/{pending_appointment['id']}/cancel",
        headers=patient_headers,
    )

    response = await client.post(
        f"/api/v1/appointments/{pending_appointment['id']}/messages",
        json={"message": "Hello?"},
        headers=patient_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cannot_post_as_someone_else(
    client: AsyncClient,
    patient_headers: dict,
    doctor: dict,
    pending_appointment: dict,
) -> None:
    """The sender must be the authenticated user."""
    response = await client.post(
        f"/api/v1/appointments/{pending_appointment['id']}/messages",
        json={"message": "Approved!", "sender": doctor["medical_id"]},
        headers=patient_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_stranger_cannot_post(
    client: AsyncClient,
    pending_appointment: dict,
    other_patient_headers: dict,
) -> None:
    """Only the two parties can use the thread."""
    response = await client.post(
        f"/api/v1/appointments/{pending_appointment['id']}/messages",
        json={"message": "Hi"},
        headers=other_patient_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_triage_requires_symptom_checker(
    client: AsyncClient,
    patient_headers: dict,
    pending_appointment: dict,
) -> None:
    """Raising urgency without provenance is refused and changes nothing."""
    url = f"/api/v1/appointments/{pending_appointment['id']}"

    response = await client.patch(
        f"{url}/triage",
        json={"urgency_level": "Emergency", "urgency_score": 9},
        headers=patient_headers,
    )
    assert response.status_code == 422

    unchanged = (await client.get(url, headers=patient_headers)).json()
    assert unchanged["urgency_level"] == "Routine"
    assert unchanged["urgency_score"] == 0
    assert unchanged["updated_at"] == pending_appointment["updated_at"]

    response = await client.patch(
        f"{url}/triage",
        json={"urgency_level": "Emergency", "urgency_score": 9, "from_symptom_checker": True},
        headers=patient_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["urgency_level"] == "Emergency"
    assert data["urgency_score"] == 9
    assert data["from_symptom_checker"] is True


@pytest.mark.asyncio
async def test_inactive_user_is_refused(
    client: AsyncClient,
    inactive_patient_headers: dict,
) -> None:
    """Deactivated accounts get a 403."""
    response = await client.get("/api/v1/appointments/", headers=inactive_patient_headers)

    assert response.status_code == 403
