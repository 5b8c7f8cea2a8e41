import pytest
from unittest.mock import MagicMock, patch

from telecare.core.config import settings
from telecare.models.notification import Notification
from telecare.services.notification_service import NotificationService
from telecare.tasks.notification_tasks import deliver_notification

# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def inbox(db_session, make_patient):
    """A patient with three stored notifications (no delivery attempted)."""
    patient = make_patient(phone="+15550001111")
    items = [
        NotificationService.create(
            db_session,
            user_id=patient.user_id,
            notification_type="reminder",
            title=f"Notice {i}",
            body=f"Body {i}",
            deliver=False,
        )
        for i in range(3)
    ]
    return {"patient": patient, "items": items}


# ============================================================================
# SERVICE / TASKS
# ============================================================================

def test_create_queues_delivery(db_session, make_patient):
    patient = make_patient()
    with patch("telecare.tasks.notification_tasks.deliver_notification") as mock_task:
        mock_task.delay = MagicMock()
        notification = NotificationService.create(
            db_session,
            user_id=patient.user_id,
            notification_type="appointment_booked",
            title="Appointment Booked",
            body="See you soon",
        )

    mock_task.delay.assert_called_once_with(notification.id)
    assert notification.is_read is False


def test_queue_failure_keeps_in_app_record(db_session, make_patient):
    patient = make_patient()
    with patch("telecare.tasks.notification_tasks.deliver_notification") as mock_task:
        mock_task.delay = MagicMock(side_effect=ConnectionError("broker down"))
        notification = NotificationService.create(
            db_session,
            user_id=patient.user_id,
            notification_type="reminder",
            title="Reminder",
            body="Tomorrow",
        )

    assert db_session.query(Notification).filter(Notification.id == notification.id).count() == 1


def test_deliver_notification_flags_channels(db_session, inbox):
    notification = inbox["items"][0]

    result = deliver_notification.apply(args=[notification.id]).get()

    assert result == {"notification_id": notification.id, "email": True, "sms": True}
    db_session.refresh(notification)
    assert notification.is_email_sent is True
    assert notification.is_sms_sent is True
    assert notification.email_sent_at is not None


def test_deliver_notification_skips_sms_without_phone(db_session, make_patient):
    patient = make_patient(phone=None)
    notification = NotificationService.create(
        db_session, user_id=patient.user_id, notification_type="reminder",
        title="Reminder", body="Soon", deliver=False,
    )

    result = deliver_notification.apply(args=[notification.id]).get()
    assert result["email"] is True
    assert result["sms"] is False


def test_deliver_notification_email_failure_still_sends_sms(db_session, inbox, monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_BACKEND", "smtp")
    monkeypatch.setattr(settings, "SMTP_USER", None)
    notification = inbox["items"][1]

    result = deliver_notification.apply(args=[notification.id]).get()
    assert result["email"] is False
    assert result["sms"] is True


def test_deliver_missing_notification_is_noop():
    assert deliver_notification.apply(args=[999999]).get() is None


# ============================================================================
# API
# ============================================================================

@pytest.mark.asyncio
async def test_list_and_unread_count(async_client, inbox, auth_headers):
    headers = auth_headers(inbox["patient"])

    r = await async_client.get("/notifications", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["unread_count"] == 3
    assert [n["title"] for n in body["items"]] == ["Notice 2", "Notice 1", "Notice 0"]

    r = await async_client.get("/notifications/unread-count", headers=headers)
    assert r.json() == {"unread_count": 3}


@pytest.mark.asyncio
async def test_mark_read_and_read_all(async_client, inbox, auth_headers):
    headers = auth_headers(inbox["patient"])
    first = inbox["items"][0]

    r = await async_client.put(f"/notifications/{first.id}/read", headers=headers)
    assert r.status_code == 200
    assert r.json()["is_read"] is True
    assert r.json()["read_at"] is not None

    r = await async_client.get("/notifications", params={"unread_only": True}, headers=headers)
    assert len(r.json()["items"]) == 2

    r = await async_client.put("/notifications/read-all", headers=headers)
    assert r.json()["message"] == "2 notifications marked as read"

    r = await async_client.get("/notifications/unread-count", headers=headers)
    assert r.json()["unread_count"] == 0


@pytest.mark.asyncio
async def test_delete_and_ownership(async_client, inbox, make_patient, auth_headers):
    target = inbox["items"][2]
    stranger = auth_headers(make_patient())

    r = await async_client.put(f"/notifications/{target.id}/read", headers=stranger)
    assert r.status_code == 404

    r = await async_client.delete(f"/notifications/{target.id}", headers=stranger)
    assert r.status_code == 404

    r = await async_client.delete(f"/notifications/{target.id}", headers=auth_headers(inbox["patient"]))
    assert r.status_code == 200

    r = await async_client.get("/notifications", headers=auth_headers(inbox["patient"]))
    assert r.json()["pagination"]["total"] == 2
