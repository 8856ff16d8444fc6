# campus_connect/services/reminder_service.py
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from campus_connect.config import REMINDER_WINDOW_HOURS
from campus_connect.crud import appointment_crud
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.service_helper import utcnow

logger = logging.getLogger(__name__)


def send_appointment_reminders(db: Session, notifier: NotificationService, window_hours: Optional[int] = None) -> int:
    """
    Notify both parties of accepted appointments starting within the window.
    reminder_sent_at marks an appointment as done, so each one is reminded once.
    """
    now = utcnow()
    until = now + timedelta(hours=window_hours or REMINDER_WINDOW_HOURS)
    due = appointment_crud.get_due_reminders(db, now, until)
    for appointment in due:
        when = appointment.appointment_time.strftime("%Y-%m-%d %H:%M UTC")
        notifier.notify_many(
            [appointment.requester_id, appointment.appointee_id],
            type="appointment_reminder",
            content=f"Reminder: you have an appointment on {when}.",
            source_table="appointments",
            source_id=appointment.id,
        )
        appointment_crud.update_appointment(db, appointment, {"reminder_sent_at": now})
    if due:
        logger.info(f"Sent reminders for {len(due)} appointments")
    return len(due)
