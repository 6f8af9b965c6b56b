"""Tests for the booking HTTP API."""

from datetime import timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import insert

from conftest import auth_headers_for, create_doctor, create_patient, link_doctor, upcoming
from ubs_booking.main import app
from ubs_booking.models import ubs
from ubs_booking.services.notification_service import get_notifier

MONDAY = upcoming(1)


class FailingNotifier:
    """Notifier whose channel is down."""

    async def notify(self, recipient_id, recipient_kind, message) -> None:
        raise ConnectionError("notification channel unavailable")


@pytest_asyncio.fixture
async def open_monday(client, doctor_headers, unit_id) -> None:
    """Doctor declares Monday 08:00-12:00 at the test unit."""
    response = await client.post(
        "/api/v1/doctor/availability",
        json={"ubs_id": str(unit_id), "day_of_week": 1, "start_time": "08:00", "end_time": "12:00"},
        headers=doctor_headers,
    )
    assert response.status_code == 200


def booking_payload(unit_id, at="09:00", on=MONDAY) -> dict:
    return {
        "ubs_id": str(unit_id),
        "specialty": "Clinico Geral",
        "appointment_date": on.isoformat(),
        "appointment_time": at,
    }


@pytest.mark.asyncio
async def test_health_check(client) -> None:
    """Test basic health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

    response = await client.get("/api/v1/ping")
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_queue_scenario(client, db_session, unit_id, open_monday, patient_headers) -> None:
    """Two patients book, collide, cancel and move up the queue."""
    other_headers = auth_headers_for(await create_patient(db_session, name="Ana Costa"), "patient")

    response = await client.post("/api/v1/appointments/", json=booking_payload(unit_id), headers=patient_headers)
    assert response.status_code == 201
    first = response.json()
    assert first["queue_position"] == 1
    assert first["appointment"]["status"] == "pending"

    response = await client.post("/api/v1/appointments/", json=booking_payload(unit_id), headers=other_headers)
    assert response.status_code == 409
    assert response.json()["kind"] == "Conflict"

    response = await client.post(
        "/api/v1/appointments/", json=booking_payload(unit_id, at="10:00"), headers=other_headers
    )
    assert response.status_code == 201
    second = response.json()
    assert second["queue_position"] == 2

    response = await client.delete(f"/api/v1/appointments/{first['appointment']['id']}", headers=patient_headers)
    assert response.status_code == 200
    assert response.json()["appointment"]["status"] == "cancelled"

    response = await client.get("/api/v1/appointments/", headers=other_headers)
    items = response.json()["items"]
    assert [item["queue_position"] for item in items] == [1]
    assert items[0]["id"] == second["appointment"]["id"]


@pytest.mark.asyncio
async def test_book_requires_authentication(client, unit_id) -> None:
    """Test booking without a token."""
    response = await client.post("/api/v1/appointments/", json=booking_payload(unit_id))

    assert response.status_code == 401
    assert response.json()["kind"] == "Unauthorized"


@pytest.mark.asyncio
async def test_book_rejects_invalid_token(client, unit_id) -> None:
    """Test booking with a malformed token."""
    response = await client.post(
        "/api/v1/appointments/",
        json=booking_payload(unit_id),
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_doctor_cannot_book(client, unit_id, doctor_headers) -> None:
    """Only patients can book appointments."""
    response = await client.post("/api/v1/appointments/", json=booking_payload(unit_id), headers=doctor_headers)

    assert response.status_code == 403
    assert response.json()["kind"] == "Forbidden"


@pytest.mark.asyncio
async def test_patient_cannot_manage_availability(client, unit_id, patient_headers) -> None:
    """Only doctors can declare availability."""
    response = await client.post(
        "/api/v1/doctor/availability",
        json={"ubs_id": str(unit_id), "day_of_week": 1, "start_time": "08:00", "end_time": "12:00"},
        headers=patient_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_book_validation_errors(client, unit_id, open_monday, patient_headers) -> None:
    """Test malformed payloads and past dates."""
    payload = booking_payload(unit_id)
    payload["specialty"] = "   "
    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)
    assert response.status_code == 422
    assert response.json()["kind"] == "ValidationError"

    payload = booking_payload(unit_id, on=MONDAY - timedelta(days=364))
    response = await client.post("/api/v1/appointments/", json=payload, headers=patient_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_book_outside_availability(client, unit_id, open_monday, patient_headers) -> None:
    """Test booking when the doctor does not work."""
    response = await client.post(
        "/api/v1/appointments/", json=booking_payload(unit_id, at="15:00"), headers=patient_headers
    )

    assert response.status_code == 409
    assert response.json()["message"] == "Doctor is not available at this time"


@pytest.mark.asyncio
async def test_cancel_rules(client, unit_id, open_monday, patient_headers, other_patient_headers) -> None:
    """Test cancelling someone else's, a missing and an already cancelled appointment."""
    response = await client.post("/api/v1/appointments/", json=booking_payload(unit_id), headers=patient_headers)
    appointment_id = response.json()["appointment"]["id"]

    response = await client.delete(f"/api/v1/appointments/{appointment_id}", headers=other_patient_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/appointments/{uuid4()}", headers=patient_headers)
    assert response.status_code == 404
    assert response.json()["kind"] == "NotFound"

    response = await client.delete(f"/api/v1/appointments/{appointment_id}", headers=patient_headers)
    assert response.status_code == 200

    response = await client.delete(f"/api/v1/appointments/{appointment_id}", headers=patient_headers)
    assert response.status_code == 409
    assert response.json()["kind"] == "AlreadyCancelled"


@pytest.mark.asyncio
async def test_patient_listings(client, unit_id, open_monday, patient_headers) -> None:
    """Test upcoming, past and per-date listings."""
    await client.post("/api/v1/appointments/", json=booking_payload(unit_id), headers=patient_headers)

    response = await client.get("/api/v1/appointments/upcoming", headers=patient_headers)
    assert response.json()["total"] == 1

    response = await client.get("/api/v1/appointments/past", headers=patient_headers)
    assert response.json()["total"] == 0

    response = await client.get(f"/api/v1/appointments/date/{MONDAY.isoformat()}", headers=patient_headers)
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_notifications_delivered(client, notifier, patient_id, doctor_id, unit_id, open_monday, patient_headers) -> None:
    """Booking and cancelling notify the people involved."""
    response = await client.post("/api/v1/appointments/", json=booking_payload(unit_id), headers=patient_headers)
    appointment_id = response.json()["appointment"]["id"]

    assert [(r, k.value) for r, k, _ in notifier.sent] == [(patient_id, "patient"), (doctor_id, "doctor")]

    await client.delete(f"/api/v1/appointments/{appointment_id}", headers=patient_headers)

    assert notifier.sent[-1][0] == doctor_id
    assert notifier.sent[-1][2].startswith("Appointment cancelled")


@pytest.mark.asyncio
async def test_notification_failure_keeps_booking(client, unit_id, open_monday, patient_headers) -> None:
    """A broken notification channel does not fail the booking."""

    app.dependency_overrides[get_notifier] = FailingNotifier

    response = await client.post("/api/v1/appointments/", json=booking_payload(unit_id), headers=patient_headers)
    assert response.status_code == 201

    response = await client.get("/api/v1/appointments/", headers=patient_headers)
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_doctor_queue_actions(client, db_session, notifier, patient_id, unit_id, open_monday, patient_headers, doctor_headers) -> None:
    """The assigned doctor confirms and completes; others are refused."""
    response = await client.post("/api/v1/appointments/", json=booking_payload(unit_id), headers=patient_headers)
    appointment_id = response.json()["appointment"]["id"]
    colleague_headers = auth_headers_for(await create_doctor(db_session, name="Dr. Rita Alves"), "doctor")

    response = await client.put(f"/api/v1/doctor/appointments/{appointment_id}/complete", headers=doctor_headers)
    assert response.status_code == 409

    response = await client.put(f"/api/v1/doctor/appointments/{appointment_id}/confirm", headers=colleague_headers)
    assert response.status_code == 403

    response = await client.put(f"/api/v1/doctor/appointments/{appointment_id}/confirm", headers=doctor_headers)
    assert response.status_code == 200
    assert response.json()["appointment"]["status"] == "confirmed"
    assert notifier.sent[-1][0] == patient_id

    response = await client.put(f"/api/v1/doctor/appointments/{appointment_id}/complete", headers=doctor_headers)
    assert response.json()["appointment"]["status"] == "completed"

    response = await client.get("/api/v1/doctor/appointments", headers=doctor_headers)
    assert response.json()["total"] == 1

    response = await client.get(f"/api/v1/doctor/appointments/date/{MONDAY.isoformat()}", headers=doctor_headers)
    assert response.json()["total"] == 1

    response = await client.get("/api/v1/doctor/appointments/today", headers=doctor_headers)
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_weekly_availability_endpoints(client, unit_id, doctor_headers) -> None:
    """Test declaring, listing and removing weekly windows."""
    response = await client.post(
        "/api/v1/doctor/availability",
        json={"ubs_id": str(unit_id), "day_of_week": 3, "start_time": "14:00", "end_time": "13:00"},
        headers=doctor_headers,
    )
    assert response.status_code == 422

    for day in (1, 3):
        response = await client.post(
            "/api/v1/doctor/availability",
            json={"ubs_id": str(unit_id), "day_of_week": day, "start_time": "08:00", "end_time": "12:00"},
            headers=doctor_headers,
        )
        assert response.status_code == 200

    response = await client.get(f"/api/v1/doctor/availability/{unit_id}", headers=doctor_headers)
    assert [w["day_of_week"] for w in response.json()] == [1, 3]

    response = await client.request(
        "DELETE",
        "/api/v1/doctor/availability",
        json={"ubs_id": str(unit_id), "day_of_week": 1},
        headers=doctor_headers,
    )
    assert response.status_code == 200

    response = await client.get(f"/api/v1/doctor/availability/{unit_id}", headers=doctor_headers)
    assert [w["day_of_week"] for w in response.json()] == [3]

    response = await client.request(
        "DELETE",
        "/api/v1/doctor/availability",
        json={"ubs_id": str(unit_id), "day_of_week": 1},
        headers=doctor_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_date_availability_endpoints(client, unit_id, open_monday, doctor_headers, patient_headers) -> None:
    """Listing a date restricts bookings to listed dates until removed."""
    other_monday = MONDAY + timedelta(days=7)
    body = {"ubs_id": str(unit_id), "available_date": other_monday.isoformat()}

    response = await client.post("/api/v1/doctor/date-availability", json=body, headers=doctor_headers)
    assert response.status_code == 200
    assert response.json()["is_available"] is True

    response = await client.post(
        "/api/v1/appointments/", json=booking_payload(unit_id, on=MONDAY), headers=patient_headers
    )
    assert response.status_code == 409
    assert response.json()["message"] == "Doctor is not available on this date"

    response = await client.get(f"/api/v1/doctor/date-availability/{unit_id}", headers=doctor_headers)
    assert [d["available_date"] for d in response.json()] == [other_monday.isoformat()]

    response = await client.get(f"/api/v1/ubs/{unit_id}/available-dates", headers=patient_headers)
    assert [d["available_date"] for d in response.json()] == [other_monday.isoformat()]

    response = await client.request(
        "DELETE", "/api/v1/doctor/date-availability", json=body, headers=doctor_headers
    )
    assert response.status_code == 200

    response = await client.post(
        "/api/v1/appointments/", json=booking_payload(unit_id, on=MONDAY), headers=patient_headers
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_unit_doctors(client, doctor_id, unit_id, patient_headers) -> None:
    """Test listing the doctors attending a unit."""
    response = await client.get(f"/api/v1/ubs/{unit_id}/doctors", headers=patient_headers)

    assert response.status_code == 200
    assert [d["id"] for d in response.json()["doctors"]] == [str(doctor_id)]

    response = await client.get(f"/api/v1/ubs/{uuid4()}/doctors", headers=patient_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_doctor_units(client, db_session, doctor_id, unit_id, doctor_headers, patient_headers) -> None:
    """A doctor lists the units they actively attend, by name."""
    central = uuid4()
    closed = uuid4()
    await db_session.execute(
        insert(ubs).values([{"id": central, "name": "UBS Centro"}, {"id": closed, "name": "UBS Jardim"}])
    )
    await db_session.commit()
    await link_doctor(db_session, doctor_id, central)
    await link_doctor(db_session, doctor_id, closed, is_active=False)

    response = await client.get("/api/v1/doctor/ubs", headers=doctor_headers)

    assert response.status_code == 200
    units = response.json()
    assert [u["id"] for u in units] == [str(central), str(unit_id)]
    assert units[1]["name"] == "UBS Vila Nova"

    response = await client.get("/api/v1/doctor/ubs", headers=patient_headers)
    assert response.status_code == 403
