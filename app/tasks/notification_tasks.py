from app.core.celery_app import celery_app
from app.core.exceptions import handle_external_service_error
from app.domain.appointments.service import AppointmentService
from app.infrastructure.database import SessionLocal
from app.infrastructure.notifications import send_notification
from loguru import logger
import asyncio
import uuid

import app.domain.models  # noqa: F401


@celery_app.task(name="app.tasks.notification_tasks.deliver_notification", bind=True, max_retries=3)
def deliver_notification(self, recipient: str, subject: str, body: str, channel: str = "email"):
    """
    Deliver one email or SMS message.
    """
    logger.info(f"Background task: sending {channel} to {recipient}")
    # The channel sender is async; Celery workers are sync
    result = asyncio.run(send_notification(recipient, subject, body, channel))
    if result.get("status") != "sent":
        error = handle_external_service_error(
            RuntimeError(result.get("error", "unknown error")), f"{channel} gateway", "send"
        )
        logger.error(f"Delivery to {recipient} failed: {error.message}")
        raise self.retry(exc=error, countdown=2 ** self.request.retries)
    return result


@celery_app.task(name="app.tasks.notification_tasks.send_appointment_reminder")
def send_appointment_reminder(appointment_id: str, hours_before: int, expected_start: str = None):
    """
    Send a reminder queued at booking time for one appointment.
    """
    db = SessionLocal()
    try:
        sent = AppointmentService(db).send_reminder(uuid.UUID(appointment_id), hours_before, expected_start)
        logger.info(f"Reminder for appointment {appointment_id} ({hours_before}h): sent={sent}")
        return sent
    finally:
        db.close()


@celery_app.task(name="app.tasks.notification_tasks.send_daily_reminders")
def send_daily_reminders():
    """
    Nightly batch: remind patients booked for tomorrow.
    """
    db = SessionLocal()
    try:
        sent = AppointmentService(db).send_daily_reminders()
        logger.info(f"Daily reminder batch sent {sent} reminders")
        return sent
    finally:
        db.close()
