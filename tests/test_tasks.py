import pytest
from datetime import date, time

from sqlalchemy.orm import sessionmaker

from app.domain.appointments.service import AppointmentService
from app.tasks import notification_tasks


@pytest.fixture
def task_sessions(monkeypatch, db_session):
    """Point the worker tasks at the test database."""
    monkeypatch.setattr(
        notification_tasks, "SessionLocal", sessionmaker(bind=db_session.get_bind(), expire_on_commit=False)
    )


@pytest.mark.notifications
@pytest.mark.integration
class TestNotificationTasks:

    def test_deliver_notification(self):
        result = notification_tasks.deliver_notification("pat@example.com", "Reminder", "Tomorrow", "email")

        assert result == {"status": "sent", "recipient": "pat@example.com", "channel": "email"}

    def test_queued_reminder(self, task_sessions, db_session, patient, clinic, dentist):
        appointment = AppointmentService(db_session).create_appointment(
            patient.id, clinic.id, date(2030, 1, 8), time(10, 0), dentist_id=dentist.id
        )

        sent = notification_tasks.send_appointment_reminder(str(appointment.id), 24, "2030-01-08T10:00:00")
        stale = notification_tasks.send_appointment_reminder(str(appointment.id), 2, "2030-01-08T11:00:00")

        assert sent is True
        assert stale is False

    def test_daily_batch(self, task_sessions, db_session, patient, clinic, dentist):
        AppointmentService(db_session).create_appointment(
            patient.id, clinic.id, date(2030, 1, 8), time(10, 0), dentist_id=dentist.id
        )

        assert notification_tasks.send_daily_reminders() == 1
        assert notification_tasks.send_daily_reminders() == 0
