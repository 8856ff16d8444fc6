from datetime import timedelta

import pytest

from campus_connect.models.appointment_model import Appointment, AppointmentStatus
from campus_connect.models.notification_model import Notification
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.reminder_service import send_appointment_reminders
from campus_connect.services.service_helper import utcnow


@pytest.fixture
def schedule(db, student, lecturer):
    def _schedule(hours_ahead, status=AppointmentStatus.accepted):
        appointment = Appointment(
            requester_id=student.id,
            appointee_id=lecturer.id,
            appointment_time=utcnow() + timedelta(hours=hours_ahead),
            status=status,
        )
        db.add(appointment)
        db.commit()
        return appointment

    return _schedule


def test_reminds_both_parties_once(db, realtime, schedule, student, lecturer):
    appointment = schedule(2)
    notifier = NotificationService(db, realtime)

    assert send_appointment_reminders(db, notifier, window_hours=24) == 1
    reminded = {n.user_id for n in db.query(Notification).filter(Notification.type == "appointment_reminder")}
    assert reminded == {student.id, lecturer.id}
    db.refresh(appointment)
    assert appointment.reminder_sent_at is not None

    assert send_appointment_reminders(db, notifier, window_hours=24) == 0
    assert db.query(Notification).count() == 2


def test_skips_pending_and_out_of_window(db, realtime, schedule):
    schedule(2, status=AppointmentStatus.pending)
    schedule(48)
    schedule(-1)
    assert send_appointment_reminders(db, NotificationService(db, realtime), window_hours=24) == 0
    assert db.query(Notification).count() == 0
