from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from campus_connect.models.appointment_model import LIVE_STATUSES, Appointment, AppointmentStatus

# Longest bookable duration; bounds the candidate window for overlap counts.
MAX_DURATION_MINUTES = 480


def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
    return db.query(Appointment).filter(Appointment.id == appointment_id).first()


def _paginate(query, page: int, limit: int) -> Tuple[List[Appointment], int]:
    total = query.count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, total


def list_for_requester(
    db: Session,
    requester_id: int,
    status: Optional[AppointmentStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Appointment], int]:
    query = db.query(Appointment).filter(Appointment.requester_id == requester_id)
    if status:
        query = query.filter(Appointment.status == status)
    return _paginate(query.order_by(Appointment.appointment_time.desc()), page, limit)


def list_for_appointee(
    db: Session,
    appointee_id: int,
    status: Optional[AppointmentStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Appointment], int]:
    query = db.query(Appointment).filter(Appointment.appointee_id == appointee_id)
    if status:
        query = query.filter(Appointment.status == status)
    return _paginate(query.order_by(Appointment.appointment_time.desc()), page, limit)


def list_upcoming_for_appointee(db: Session, appointee_id: int, now: datetime, limit: int = 10) -> List[Appointment]:
    return (
        db.query(Appointment)
        .filter(
            Appointment.appointee_id == appointee_id,
            Appointment.appointment_time >= now,
            Appointment.status.in_([AppointmentStatus.accepted, AppointmentStatus.rescheduled]),
        )
        .order_by(Appointment.appointment_time.asc())
        .limit(limit)
        .all()
    )


def list_all(
    db: Session,
    status: Optional[AppointmentStatus] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Appointment], int]:
    """Store-side filters only; name and free-text filters run on the returned page."""
    query = db.query(Appointment)
    if status:
        query = query.filter(Appointment.status == status)
    if date_from:
        query = query.filter(Appointment.appointment_time >= date_from)
    if date_to:
        query = query.filter(Appointment.appointment_time <= date_to)
    return _paginate(query.order_by(Appointment.appointment_time.desc()), page, limit)


def search_by_reason(db: Session, q: str, limit: int = 50) -> List[Appointment]:
    return (
        db.query(Appointment)
        .filter(Appointment.reason.ilike(f"%{q}%"))
        .order_by(Appointment.appointment_time.desc())
        .limit(limit)
        .all()
    )


def count_overlapping(
    db: Session,
    appointee_id: int,
    start: datetime,
    end: datetime,
    buffer_minutes: int = 0,
    exclude_id: Optional[int] = None,
) -> int:
    """Live appointments of the appointee intersecting [start - buffer, end + buffer)."""
    buffer = timedelta(minutes=buffer_minutes)
    window_start, window_end = start - buffer, end + buffer
    query = db.query(Appointment).filter(
        Appointment.appointee_id == appointee_id,
        Appointment.status.in_(LIVE_STATUSES),
        Appointment.appointment_time < window_end,
        Appointment.appointment_time > window_start - timedelta(minutes=MAX_DURATION_MINUTES),
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)
    return sum(
        1 for appt in query.all()
        if appt.appointment_time + timedelta(minutes=appt.duration_minutes or 0) > window_start
    )


def status_counts(db: Session, user_id: Optional[int] = None, as_appointee: bool = False) -> dict:
    query = db.query(Appointment.status, func.count(Appointment.id))
    if user_id is not None:
        column = Appointment.appointee_id if as_appointee else Appointment.requester_id
        query = query.filter(column == user_id)
    counts = {status.value: 0 for status in AppointmentStatus}
    for status, count in query.group_by(Appointment.status).all():
        counts[status.value if hasattr(status, "value") else status] = count
    return counts


def count_upcoming(db: Session, now: datetime, user_id: Optional[int] = None, as_appointee: bool = False) -> int:
    query = db.query(func.count(Appointment.id)).filter(
        Appointment.appointment_time >= now,
        Appointment.status.in_(LIVE_STATUSES),
    )
    if user_id is not None:
        column = Appointment.appointee_id if as_appointee else Appointment.requester_id
        query = query.filter(column == user_id)
    return query.scalar() or 0


def get_due_reminders(db: Session, now: datetime, until: datetime) -> List[Appointment]:
    return (
        db.query(Appointment)
        .filter(
            Appointment.status == AppointmentStatus.accepted,
            Appointment.appointment_time > now,
            Appointment.appointment_time <= until,
            Appointment.reminder_sent_at.is_(None),
        )
        .order_by(Appointment.appointment_time.asc())
        .all()
    )


def update_appointment(db: Session, db_appointment: Appointment, update_data: dict) -> Appointment:
    for key, value in update_data.items():
        setattr(db_appointment, key, value)
    db.add(db_appointment)
    db.commit()
    db.refresh(db_appointment)
    return db_appointment


def delete_appointment(db: Session, db_appointment: Appointment) -> None:
    db.delete(db_appointment)
    db.commit()
