from datetime import timedelta

import pytest

from telecare.models.notification import Notification
from telecare.models.reminder import Reminder
from telecare.services.reminder_service import ReminderService, build_reminder_message
from telecare.utils.helpers import utcnow


def _notifications_for(db, patient):
    db.expire_all()
    return (
        db.query(Notification)
        .filter(Notification.user_id == patient.user_id, Notification.notification_type == "reminder")
        .order_by(Notification.id.asc())
        .all()
    )


def _add_reminder(db, appt, remind_at, reminder_type="1h", is_sent=False):
    reminder = Reminder(
        appointment_id=appt.id,
        patient_id=appt.patient_id,
        doctor_id=appt.doctor_id,
        remind_at=remind_at,
        reminder_type=reminder_type,
        is_sent=is_sent,
    )
    db.add(reminder)
    db.commit()
    return reminder


# ============================================================================
# CREATION
# ============================================================================

def test_reminders_only_created_for_future_offsets(db_session, make_patient, make_doctor, make_appointment):
    appt = make_appointment(make_patient(), make_doctor())
    starts_at = appt.starts_at

    created = ReminderService.create_for_appointment(
        db_session, appt, now=starts_at - timedelta(hours=2)
    )

    assert sorted(r.reminder_type for r in created) == ["1h", "5min"]
    by_type = {r.reminder_type: r.remind_at for r in created}
    assert by_type["1h"] == starts_at - timedelta(hours=1)
    assert by_type["5min"] == starts_at - timedelta(minutes=5)


def test_all_three_offsets_for_distant_appointment(db_session, make_patient, make_doctor, make_appointment):
    appt = make_appointment(make_patient(), make_doctor(), days_ahead=5)
    created = ReminderService.create_for_appointment(db_session, appt, now=utcnow())
    assert sorted(r.reminder_type for r in created) == ["1h", "24h", "5min"]


def test_reminder_message_names_doctor_and_time(make_patient, make_doctor, make_appointment):
    appt = make_appointment(make_patient(), make_doctor(name="Asha Rao"), slot="09:30", reason="Migraine")
    message = build_reminder_message(appt, "5min")
    assert "Dr. Asha Rao" in message
    assert "09:30" in message
    assert "Migraine" in message
    assert message.endswith("Please join the waiting room.")


# ============================================================================
# PROCESSING
# ============================================================================

def test_due_reminders_are_processed_exactly_once(db_session, make_patient, make_doctor, make_appointment):
    patient = make_patient()
    appt = make_appointment(patient, make_doctor())
    starts_at = appt.starts_at
    ReminderService.create_for_appointment(db_session, appt, now=starts_at - timedelta(days=2))

    now = starts_at - timedelta(minutes=50)
    processed = ReminderService.process_due_reminders(db_session, now=now)
    assert processed >= 2

    db_session.expire_all()
    rows = {
        r.reminder_type: r
        for r in db_session.query(Reminder).filter(Reminder.appointment_id == appt.id).all()
    }
    assert rows["24h"].is_sent and rows["1h"].is_sent
    assert rows["24h"].sent_at == now
    # not due yet
    assert rows["5min"].is_sent is False

    notifications = _notifications_for(db_session, patient)
    assert [n.title for n in notifications] == [
        "Appointment Reminder - 24 Hours",
        "Appointment Reminder - 1 Hour",
    ]
    assert all(n.appointment_id == appt.id for n in notifications)

    ReminderService.process_due_reminders(db_session, now=now)
    assert len(_notifications_for(db_session, patient)) == 2

    ReminderService.process_due_reminders(db_session, now=starts_at)
    titles = [n.title for n in _notifications_for(db_session, patient)]
    assert titles[-1] == "Appointment Starting Soon"
    assert len(titles) == 3


def test_overlapping_sweeps_send_reminder_once(
    db_session, make_patient, make_doctor, make_appointment, monkeypatch
):
    from telecare.core.database import SessionLocal
    from telecare.services import reminder_service

    patient = make_patient()
    appt = make_appointment(patient, make_doctor())
    reminder = _add_reminder(db_session, appt, utcnow() - timedelta(minutes=1))

    original_create = reminder_service.NotificationService.create
    overlapped = []

    def create_with_overlap(db, **kwargs):
        # a second sweep (cron endpoint vs. beat) runs before this one commits
        if not overlapped:
            overlapped.append(True)
            other = SessionLocal()
            try:
                ReminderService.process_due_reminders(other)
            finally:
                other.close()
        return original_create(db, **kwargs)

    monkeypatch.setattr(
        reminder_service.NotificationService, "create", staticmethod(create_with_overlap)
    )

    ReminderService.process_due_reminders(db_session)

    assert overlapped == [True]
    assert len(_notifications_for(db_session, patient)) == 1
    db_session.refresh(reminder)
    assert reminder.is_sent is True


def test_stale_copy_of_sent_reminder_is_skipped(db_session, make_patient, make_doctor, make_appointment):
    patient = make_patient()
    appt = make_appointment(patient, make_doctor())
    reminder = _add_reminder(db_session, appt, utcnow() - timedelta(minutes=1))

    # another worker marks it sent after this session loaded it
    from telecare.core.database import SessionLocal

    other = SessionLocal()
    try:
        other.query(Reminder).filter(Reminder.id == reminder.id).update({"is_sent": True})
        other.commit()
    finally:
        other.close()

    assert ReminderService._claim(db_session, reminder.id, utcnow()) is False
    assert _notifications_for(db_session, patient) == []


def test_failed_notification_releases_reminder(
    db_session, make_patient, make_doctor, make_appointment, monkeypatch
):
    from telecare.services import reminder_service

    patient = make_patient()
    appt = make_appointment(patient, make_doctor())
    reminder = _add_reminder(db_session, appt, utcnow() - timedelta(minutes=1))

    def failing_create(db, **kwargs):
        raise RuntimeError("notifications table locked")

    monkeypatch.setattr(reminder_service.NotificationService, "create", staticmethod(failing_create))
    ReminderService.process_due_reminders(db_session)

    db_session.refresh(reminder)
    assert reminder.is_sent is False
    assert reminder.sent_at is None


def test_cancelled_appointment_reminder_is_retired_silently(
    db_session, make_patient, make_doctor, make_appointment
):
    patient = make_patient()
    appt = make_appointment(patient, make_doctor(), status="cancelled")
    reminder = _add_reminder(db_session, appt, utcnow() - timedelta(minutes=1))

    ReminderService.process_due_reminders(db_session)

    db_session.refresh(reminder)
    assert reminder.is_sent is True
    assert _notifications_for(db_session, patient) == []


def test_cancel_for_appointment_keeps_sent_rows(db_session, make_patient, make_doctor, make_appointment):
    appt = make_appointment(make_patient(), make_doctor())
    _add_reminder(db_session, appt, utcnow() - timedelta(hours=1), reminder_type="24h", is_sent=True)
    _add_reminder(db_session, appt, utcnow() + timedelta(hours=1))

    removed = ReminderService.cancel_for_appointment(db_session, appt.id)

    assert removed == 1
    remaining = db_session.query(Reminder).filter(Reminder.appointment_id == appt.id).all()
    assert [r.reminder_type for r in remaining] == ["24h"]


# ============================================================================
# API
# ============================================================================

@pytest.mark.asyncio
async def test_list_upcoming_and_delete(
    async_client, db_session, make_patient, make_doctor, make_appointment, auth_headers
):
    patient = make_patient()
    appt = make_appointment(patient, make_doctor(), days_ahead=3)
    soon = _add_reminder(db_session, appt, utcnow() + timedelta(hours=2), reminder_type="1h")
    later = _add_reminder(db_session, appt, utcnow() + timedelta(days=2), reminder_type="24h")
    sent = _add_reminder(db_session, appt, utcnow() - timedelta(hours=1), reminder_type="5min", is_sent=True)
    headers = auth_headers(patient)

    r = await async_client.get("/reminders", headers=headers)
    assert r.status_code == 200
    assert [item["id"] for item in r.json()["items"]] == [soon.id, later.id]

    r = await async_client.get("/reminders", params={"include_processed": True}, headers=headers)
    assert r.json()["pagination"]["total"] == 3

    r = await async_client.get("/reminders/upcoming", headers=headers)
    assert [item["id"] for item in r.json()] == [soon.id]
    assert r.json()[0]["doctor"]["id"] == appt.doctor_id

    r = await async_client.delete(f"/reminders/{sent.id}", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot delete a reminder that has already been sent"

    r = await async_client.delete(f"/reminders/{later.id}", headers=headers)
    assert r.status_code == 200

    r = await async_client.delete(f"/reminders/{soon.id}", headers=auth_headers(make_patient()))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_reminders_are_patient_only(async_client, make_doctor, auth_headers):
    r = await async_client.get("/reminders", headers=auth_headers(make_doctor()))
    assert r.status_code == 403
