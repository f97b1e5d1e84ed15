import pytest
from unittest.mock import patch

from app.domain.notifications.models import Notification, NotificationPriority, NotificationType
from app.domain.notifications.service import NotificationService
from app.infrastructure.notifications import send_notification

API = "/api/v1/notifications"


@pytest.mark.notifications
@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_notification_success():
    """Test successful notification sending"""
    result = await send_notification(
        recipient="test@example.com",
        subject="Test Subject",
        body="Test body content",
        channel="email"
    )
    assert result["status"] == "sent"
    assert result["recipient"] == "test@example.com"
    assert result["channel"] == "email"


@pytest.mark.notifications
@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_notification_error():
    """Test notification sending error handling"""
    with patch("app.infrastructure.notifications.logger") as mock_logger:
        mock_logger.info.side_effect = Exception("Send failed")

        result = await send_notification("test@example.com", "Subject", "Body")

    assert result == {"status": "error", "error": "Send failed"}
    mock_logger.error.assert_called_once()


@pytest.mark.notifications
@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_notification_sms():
    """Test SMS notification"""
    result = await send_notification(
        recipient="+1234567890",
        subject="",
        body="Test SMS message",
        channel="sms"
    )
    assert result["status"] == "sent"
    assert result["channel"] == "sms"


@pytest.mark.notifications
@pytest.mark.integration
class TestNotificationFanOut:
    """Channel fan-out of scheduling events."""

    def test_all_channels(self, db_session, staff_user, channel_mocks):
        result = NotificationService(db_session).notify_user(
            staff_user, NotificationType.SCHEDULE_CHANGE, "Shift Updated", "Your shift moved", sms=True
        )

        assert result == {"in_app": True, "email_queued": True, "sms_queued": True, "errors": []}
        channels = [call.args[3] for call in channel_mocks.enqueue_delivery.call_args_list]
        assert channels == ["email", "sms"]
        stored = db_session.query(Notification).filter(Notification.user_id == staff_user.id).one()
        assert stored.title == "Shift Updated"
        assert stored.priority == NotificationPriority.NORMAL

    def test_channel_failure_is_reported_not_raised(self, db_session, staff_user, channel_mocks):
        channel_mocks.enqueue_delivery.side_effect = Exception("broker unavailable")

        result = NotificationService(db_session).notify_user(
            staff_user, NotificationType.SCHEDULE_ASSIGNMENT, "New Shift Assigned", "See you Tuesday"
        )

        assert result["in_app"] is True
        assert result["email_queued"] is False
        assert result["errors"] == [{"channel": "email", "error": "broker unavailable"}]

    def test_missing_phone_skips_sms(self, db_session, dentist, channel_mocks):
        result = NotificationService(db_session).notify_user(
            dentist, NotificationType.SCHEDULE_CHANGE, "Shift Updated", "Moved", email=False, sms=True
        )

        assert result["sms_queued"] is False
        channel_mocks.enqueue_delivery.assert_not_called()

    def test_patient_preferences(self, db_session, patient, other_patient, channel_mocks):
        service = NotificationService(db_session)

        booked = service.notify_patient(
            patient, NotificationType.APPOINTMENT_CONFIRMATION, "Appointment Confirmed", "Tuesday 10:00"
        )
        no_email = service.notify_patient(
            other_patient, NotificationType.APPOINTMENT_CONFIRMATION, "Appointment Confirmed", "Tuesday 10:00"
        )

        assert booked["in_app"] is True
        assert booked["email_queued"] is True
        assert booked["sms_queued"] is False
        # no portal account and email switched off
        assert no_email == {"in_app": False, "email_queued": False, "sms_queued": False, "errors": []}
        channel_mocks.enqueue_delivery.assert_called_once_with(
            "pat@example.com", "Appointment Confirmed", "Tuesday 10:00", "email"
        )

    def test_patient_opted_out(self, db_session, patient, channel_mocks):
        patient.notifications_enabled = False
        db_session.commit()

        result = NotificationService(db_session).notify_patient(
            patient, NotificationType.APPOINTMENT_REMINDER, "Reminder", "Tomorrow 10:00"
        )

        assert result["in_app"] is False
        assert db_session.query(Notification).count() == 0
        channel_mocks.enqueue_delivery.assert_not_called()


@pytest.mark.notifications
@pytest.mark.integration
class TestNotificationInbox:
    """Test suite for the notification inbox endpoints."""

    def _seed(self, db, user, count=2):
        service = NotificationService(db)
        for index in range(count):
            service.notify_user(
                user, NotificationType.SCHEDULE_CHANGE, f"Update {index}", "Shift moved", email=False
            )
        return db.query(Notification).filter(Notification.user_id == user.id).all()

    def test_list_reports_unread_count(self, client, db_session, staff_headers, staff_user):
        self._seed(db_session, staff_user)

        response = client.get(API, headers=staff_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["unread_count"] == 2
        assert len(data["items"]) == 2
        assert data["items"][0]["type"] == "schedule_change"

    def test_mark_one_read(self, client, db_session, staff_headers, staff_user):
        first, _ = self._seed(db_session, staff_user)

        response = client.post(f"{API}/{first.id}/read", headers=staff_headers)
        unread = client.get(API, params={"unread_only": True}, headers=staff_headers).json()

        assert response.status_code == 200
        assert response.json()["is_read"] is True
        assert response.json()["read_at"] is not None
        assert unread["unread_count"] == 1
        assert len(unread["items"]) == 1

    def test_mark_all_read(self, client, db_session, staff_headers, staff_user):
        self._seed(db_session, staff_user, count=3)

        response = client.post(f"{API}/read-all", headers=staff_headers)
        again = client.post(f"{API}/read-all", headers=staff_headers)

        assert response.json() == {"updated": 3}
        assert again.json() == {"updated": 0}

    def test_cannot_read_someone_elses_notification(
        self, client, db_session, patient_headers, staff_user
    ):
        notification, _ = self._seed(db_session, staff_user)

        response = client.post(f"{API}/{notification.id}/read", headers=patient_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOTIFICATION_NOT_FOUND"

    def test_requires_authentication(self, client):
        response = client.get(API)

        assert response.status_code == 401
