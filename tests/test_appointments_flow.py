import uuid
from datetime import date, datetime, time as dtime, timedelta

import pytest

from telecare.models.appointment import Appointment
from telecare.models.notification import Notification
from telecare.models.reminder import Reminder
from telecare.services.appointment_service import AppointmentService, generate_slots
from telecare.utils.helpers import utcnow

# ============================================================================
# FIXTURES
# ============================================================================

class MockRedis:
    """Mock Redis for testing without a real Redis instance."""
    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ttl=None):
        self.store[key] = value

    async def delete_pattern(self, pattern):
        prefix = pattern.replace("*", "")
        for k in [k for k in self.store if k.startswith(prefix)]:
            del self.store[k]


@pytest.fixture
def mock_redis(monkeypatch):
    """Fixture to mock Redis cache."""
    from telecare.services.appointment_service import redis_cache
    mm = MockRedis()
    monkeypatch.setattr(redis_cache, "get", mm.get)
    monkeypatch.setattr(redis_cache, "set", mm.set)
    monkeypatch.setattr(redis_cache, "delete_pattern", mm.delete_pattern)
    return mm


@pytest.fixture
def pair(make_patient, make_doctor):
    return make_patient(name="Meera Das"), make_doctor(name=f"Dr Slot {uuid.uuid4().hex[:6]}")


def _day(days_ahead=3) -> date:
    return date.today() + timedelta(days=days_ahead)


async def _book(async_client, headers, doctor_id, day, time="09:00", reason="Fever"):
    return await async_client.post(
        "/appointments/book",
        json={
            "doctor_id": doctor_id,
            "appointment_date": day.isoformat(),
            "appointment_time": time,
            "reason": reason,
        },
        headers=headers,
    )


# ============================================================================
# SLOTS
# ============================================================================

def test_generate_slots_stops_before_window_end():
    assert generate_slots("09:00", "09:15", 5) == ["09:00", "09:05", "09:10"]
    assert generate_slots("23:50", "23:59", 3) == ["23:50", "23:53", "23:56"]
    assert generate_slots("10:00", "10:00", 3) == []


@pytest.mark.asyncio
async def test_slots_exclude_booked_and_are_cached(db_session, pair, make_appointment, mock_redis):
    patient, doctor = pair
    make_appointment(patient, doctor, days_ahead=3, slot="09:03")
    make_appointment(patient, doctor, days_ahead=3, slot="09:06", status="cancelled")

    result = await AppointmentService.get_available_slots(db_session, doctor.id, _day(3))

    assert result["available_slots"][:3] == ["09:00", "09:06", "09:09"]
    assert len(result["available_slots"]) == 19
    assert result["available_from"] == "09:00"
    assert f"available_slots:{doctor.id}:{_day(3).isoformat()}" in mock_redis.store

    # a cache hit does not touch the database
    make_appointment(patient, doctor, days_ahead=3, slot="09:00")
    cached = await AppointmentService.get_available_slots(db_session, doctor.id, _day(3))
    assert cached["available_slots"][0] == "09:00"


@pytest.mark.asyncio
async def test_todays_cached_slots_drop_elapsed_times(db_session, pair, mock_redis):
    _, doctor = pair
    today = utcnow().date()

    early = await AppointmentService.get_available_slots(
        db_session, doctor.id, today, now=datetime.combine(today, dtime(9, 10))
    )
    assert early["available_slots"][0] == "09:12"
    assert early["selected_date"] == today.isoformat()

    # served from cache half an hour later
    later = await AppointmentService.get_available_slots(
        db_session, doctor.id, today, now=datetime.combine(today, dtime(9, 40))
    )
    assert later["available_slots"][0] == "09:42"
    assert all(slot > "09:40" for slot in later["available_slots"])

    tomorrow = await AppointmentService.get_available_slots(
        db_session, doctor.id, today + timedelta(days=1), now=datetime.combine(today, dtime(9, 40))
    )
    assert tomorrow["available_slots"][0] == "09:00"


@pytest.mark.asyncio
async def test_slots_rejects_past_date_and_missing_hours(async_client, make_doctor):
    doctor = make_doctor()
    r = await async_client.get(
        "/appointments/slots", params={"doctor_id": doctor.id, "date": _day(-2).isoformat()}
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot get slots for past dates"

    idle = make_doctor(available_from=None, available_to=None)
    r = await async_client.get(
        "/appointments/slots", params={"doctor_id": idle.id, "date": _day(3).isoformat()}
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Doctor has not set available hours"

    r = await async_client.get("/appointments/slots", params={"doctor_id": 999999, "date": _day(3).isoformat()})
    assert r.status_code == 404


# ============================================================================
# BOOKING
# ============================================================================

@pytest.mark.asyncio
async def test_book_creates_reminders_and_notifications(async_client, db_session, pair, auth_headers):
    patient, doctor = pair
    r = await _book(async_client, auth_headers(patient), doctor.id, _day(3), time="09:30", reason="  Fever  ")
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "pending"
    assert body["reason"] == "Fever"
    assert body["doctor"]["name"] == doctor.name

    reminders = db_session.query(Reminder).filter(Reminder.appointment_id == body["id"]).all()
    assert sorted(r.reminder_type for r in reminders) == ["1h", "24h", "5min"]

    recipients = {
        n.user_id
        for n in db_session.query(Notification).filter(Notification.appointment_id == body["id"]).all()
    }
    assert recipients == {patient.user_id, doctor.user_id}


@pytest.mark.asyncio
async def test_double_booking_is_rejected(async_client, pair, make_patient, auth_headers):
    patient, doctor = pair
    assert (await _book(async_client, auth_headers(patient), doctor.id, _day(4))).status_code == 201

    r = await _book(async_client, auth_headers(make_patient()), doctor.id, _day(4))
    assert r.status_code == 400
    assert r.json()["detail"] == "This time slot is already booked"


@pytest.mark.asyncio
async def test_booking_in_past_or_outside_hours(async_client, pair, auth_headers):
    patient, doctor = pair
    headers = auth_headers(patient)

    r = await _book(async_client, headers, doctor.id, _day(-1))
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot book appointments in the past"

    r = await _book(async_client, headers, doctor.id, _day(3), time="11:00")
    assert r.status_code == 400
    assert r.json()["detail"] == "Selected time is outside the doctor's available hours"

    r = await _book(async_client, headers, doctor.id, _day(3), time="9am")
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_booking_must_land_on_slot_grid(async_client, pair, auth_headers):
    patient, doctor = pair
    headers = auth_headers(patient)

    r = await _book(async_client, headers, doctor.id, _day(3), time="09:01")
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid time slot"

    r = await async_client.post(
        "/appointments/book",
        json={
            "doctor_id": doctor.id,
            "appointment_date": _day(3).isoformat(),
            "appointment_time": "09:03",
            "appointment_slot": "09:06",
            "reason": "Fever",
        },
        headers=headers,
    )
    assert r.status_code == 422

    r = await async_client.post(
        "/appointments/book",
        json={
            "doctor_id": doctor.id,
            "appointment_date": _day(3).isoformat(),
            "appointment_time": "09:03",
            "appointment_slot": "09:03",
            "reason": "Fever",
        },
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()["appointment_slot"] == "09:03"

    r = await async_client.put(
        f"/appointments/{r.json()['id']}/reschedule",
        json={"appointment_date": _day(4).isoformat(), "appointment_time": "09:04"},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid time slot"


@pytest.mark.asyncio
async def test_doctors_cannot_book(async_client, pair, auth_headers):
    _, doctor = pair
    r = await _book(async_client, auth_headers(doctor), doctor.id, _day(3))
    assert r.status_code == 403


# ============================================================================
# CANCEL / RESCHEDULE / STATUS
# ============================================================================

@pytest.mark.asyncio
async def test_patient_cancel_frees_slot_and_drops_reminders(async_client, db_session, pair, auth_headers):
    patient, doctor = pair
    headers = auth_headers(patient)
    appt_id = (await _book(async_client, headers, doctor.id, _day(5))).json()["id"]

    r = await async_client.put(
        f"/appointments/{appt_id}/cancel", json={"cancellation_reason": "Feeling better"}, headers=headers
    )
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert r.json()["cancellation_reason"] == "Feeling better"
    assert db_session.query(Reminder).filter(Reminder.appointment_id == appt_id).count() == 0

    r = await async_client.put(f"/appointments/{appt_id}/cancel", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Appointment is already cancelled"

    # slot can be booked again
    assert (await _book(async_client, headers, doctor.id, _day(5))).status_code == 201


@pytest.mark.asyncio
async def test_doctor_cancel_needs_notice(db_session, pair, make_appointment):
    patient, doctor = pair
    appt = make_appointment(patient, doctor, days_ahead=6)

    with pytest.raises(ValueError, match="at least 24 hours"):
        await AppointmentService.cancel_appointment(
            db_session, appt.id, doctor.user_id, "doctor", now=appt.starts_at - timedelta(hours=2)
        )

    cancelled = await AppointmentService.cancel_appointment(
        db_session, appt.id, doctor.user_id, "doctor", reason="Conference",
        now=appt.starts_at - timedelta(days=2),
    )
    assert cancelled.status == "cancelled"
    note = (
        db_session.query(Notification)
        .filter(Notification.user_id == patient.user_id, Notification.appointment_id == appt.id)
        .one()
    )
    assert "Conference" in note.body


@pytest.mark.asyncio
async def test_completed_appointment_cannot_be_cancelled(async_client, pair, make_appointment, auth_headers):
    patient, doctor = pair
    appt = make_appointment(patient, doctor, days_ahead=-1, status="completed", consultation_status="completed")
    r = await async_client.put(f"/appointments/{appt.id}/cancel", headers=auth_headers(patient))
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot cancel completed appointments"


@pytest.mark.asyncio
async def test_reschedule_moves_to_new_row(async_client, db_session, pair, auth_headers):
    patient, doctor = pair
    headers = auth_headers(patient)
    old_id = (await _book(async_client, headers, doctor.id, _day(7))).json()["id"]

    r = await async_client.put(
        f"/appointments/{old_id}/reschedule",
        json={"appointment_date": _day(8).isoformat(), "appointment_time": "09:12"},
        headers=headers,
    )
    assert r.status_code == 200
    new = r.json()
    assert new["rescheduled_from_id"] == old_id
    assert new["appointment_time"] == "09:12"
    assert new["status"] == "pending"

    db_session.expire_all()
    old = db_session.query(Appointment).filter(Appointment.id == old_id).one()
    assert old.status == "rescheduled"
    assert db_session.query(Reminder).filter(Reminder.appointment_id == old_id).count() == 0
    assert db_session.query(Reminder).filter(Reminder.appointment_id == new["id"]).count() == 3

    r = await async_client.put(
        f"/appointments/{old_id}/reschedule",
        json={"appointment_date": _day(9).isoformat(), "appointment_time": "09:00"},
        headers=headers,
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_doctor_confirms_and_lists_schedule(async_client, db_session, pair, auth_headers):
    patient, doctor = pair
    appt_id = (await _book(async_client, auth_headers(patient), doctor.id, _day(10))).json()["id"]
    doctor_headers = auth_headers(doctor)

    r = await async_client.get("/appointments", headers=doctor_headers)
    assert r.json()["pagination"]["total"] == 0

    r = await async_client.put(
        f"/appointments/{appt_id}/status", json={"status": "confirmed"}, headers=doctor_headers
    )
    assert r.status_code == 200
    assert r.json()["status"] == "confirmed"

    r = await async_client.get("/appointments", headers=doctor_headers)
    assert [item["id"] for item in r.json()["items"]] == [appt_id]

    titles = [
        n.title
        for n in db_session.query(Notification).filter(Notification.user_id == patient.user_id).all()
    ]
    assert "Appointment Confirmed" in titles

    r = await async_client.put(
        f"/appointments/{appt_id}/status", json={"status": "cancelled"}, headers=doctor_headers
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_patient_list_is_chronological(async_client, pair, make_appointment, auth_headers):
    patient, doctor = pair
    later = make_appointment(patient, doctor, days_ahead=12, slot="09:00")
    earlier = make_appointment(patient, doctor, days_ahead=11, slot="09:30")
    cancelled = make_appointment(patient, doctor, days_ahead=11, slot="09:03", status="cancelled")

    r = await async_client.get("/appointments", headers=auth_headers(patient))
    assert [item["id"] for item in r.json()["items"]] == [cancelled.id, earlier.id, later.id]

    r = await async_client.get("/appointments", params={"status": "cancelled"}, headers=auth_headers(patient))
    assert [item["id"] for item in r.json()["items"]] == [cancelled.id]


@pytest.mark.asyncio
async def test_appointment_access_is_limited_to_participants(
    async_client, pair, make_patient, make_appointment, auth_headers
):
    patient, doctor = pair
    appt = make_appointment(patient, doctor)

    assert (await async_client.get(f"/appointments/{appt.id}", headers=auth_headers(patient))).status_code == 200
    assert (await async_client.get(f"/appointments/{appt.id}", headers=auth_headers(doctor))).status_code == 200

    r = await async_client.get(f"/appointments/{appt.id}", headers=auth_headers(make_patient()))
    assert r.status_code == 403

    r = await async_client.get("/appointments/999999", headers=auth_headers(patient))
    assert r.status_code == 404
