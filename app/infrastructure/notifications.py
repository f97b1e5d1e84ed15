import logging
from datetime import datetime
from typing import Dict, Any

logger = logging.getLogger(__name__)


async def send_notification(recipient: str, subject: str, body: str, channel: str = "email") -> Dict[str, Any]:
    """Lightweight notification sender used by the delivery task.

    Provider integrations (SMTP, SMS gateway) plug in here; the adapter
    only logs and reports success.
    """
    try:
        logger.info(f"Sending {channel} notification to {recipient}: {subject}")
        return {"status": "sent", "recipient": recipient, "channel": channel}
    except Exception as e:
        logger.error(f"Failed to send notification: {e}")
        return {"status": "error", "error": str(e)}


def enqueue_delivery(recipient: str, subject: str, body: str, channel: str = "email") -> None:
    """Hand an email/SMS message to the worker queue"""
    from app.tasks.notification_tasks import deliver_notification

    deliver_notification.delay(recipient, subject, body, channel)


def schedule_reminder(appointment_id: str, hours_before: int, expected_start: str, eta: datetime) -> None:
    """Queue a single appointment reminder for ``eta``"""
    from app.tasks.notification_tasks import send_appointment_reminder

    send_appointment_reminder.apply_async(
        args=[appointment_id, hours_before, expected_start],
        eta=eta
    )
