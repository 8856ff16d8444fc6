# campus_connect/services/appointment_service.py
import logging
from datetime import date as dt_date, datetime, timedelta
from typing import Dict, FrozenSet, List, Optional, Tuple

from sqlalchemy.orm import Session

from campus_connect.api.auth.permissions import is_admin, is_appointee_role
from campus_connect.crud import appointment_crud, availability_crud, user_crud
from campus_connect.exceptions import (
    AppError,
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from campus_connect.models.appointment_model import Appointment, AppointmentStatus
from campus_connect.models.availability_model import ExceptionType, StaffAvailability
from campus_connect.models.user_model import UserStatus
from campus_connect.schemas.appointment_schema import AppointmentCreate, AppointmentStatusUpdate
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.service_helper import build_pagination, day_bounds, to_utc_naive, utcnow

logger = logging.getLogger(__name__)

S = AppointmentStatus

# ---------------------------------------------------------
# STATE MACHINE
# ---------------------------------------------------------
TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    S.pending: frozenset({S.accepted, S.declined, S.rescheduled, S.cancelled}),
    S.accepted: frozenset({S.completed, S.rescheduled, S.cancelled}),
    S.rescheduled: frozenset({S.accepted, S.rescheduled, S.cancelled}),
    S.declined: frozenset(),
    S.completed: frozenset(),
    S.cancelled: frozenset(),
}

APPOINTEE_TARGETS = frozenset({S.accepted, S.declined, S.completed, S.rescheduled})
REQUESTER_TARGETS = frozenset({S.cancelled})

STATUS_MESSAGES = {
    S.accepted: "Your appointment on {when} has been accepted.",
    S.declined: "Your appointment request for {when} has been declined.",
    S.completed: "Your appointment on {when} has been marked as completed.",
    S.cancelled: "The appointment on {when} has been cancelled.",
    S.rescheduled: "The appointment has been rescheduled to {when}.",
}

VALID_STATUS_LIST = ", ".join(s.value for s in AppointmentStatus)


def parse_status(value) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status value. Must be one of: {VALID_STATUS_LIST}")


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def _format_when(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M UTC")


# ---------------------------------------------------------
# ACCESS
# ---------------------------------------------------------

def is_party(appointment: Appointment, user_id: int) -> bool:
    return user_id in (appointment.requester_id, appointment.appointee_id)


def get_appointment_or_404(db: Session, appointment_id: int) -> Appointment:
    db_appointment = appointment_crud.get_appointment(db, appointment_id)
    if not db_appointment:
        raise NotFoundError("Appointment not found")
    return db_appointment


def get_appointment_for_user(db: Session, appointment_id: int, current_user: AuthenticatedUser) -> Appointment:
    db_appointment = get_appointment_or_404(db, appointment_id)
    if not is_admin(current_user.role) and not is_party(db_appointment, current_user.id):
        raise AuthorizationError("You do not have access to this appointment")
    return db_appointment


# ---------------------------------------------------------
# SLOT CAPACITY
# ---------------------------------------------------------

def ensure_bookable(
    db: Session,
    appointee_id: int,
    start: datetime,
    duration_minutes: int,
    exclude_id: Optional[int] = None,
) -> Optional[StaffAvailability]:
    """
    Find the covering slot (row-locked) and check its remaining capacity.
    Must run inside the transaction that writes the appointment.

    Exceptions on the booking date apply first: 'unavailable' refuses the
    date, 'modified_hours' limits bookings to its window and 'extra_hours'
    opens its window even without a slot (one seat, no buffer).
    """
    end = start + timedelta(minutes=duration_minutes)
    exceptions = availability_crud.exceptions_on(db, appointee_id, start.date(), lock=True)
    if any(e.exception_type == ExceptionType.unavailable for e in exceptions):
        raise ValidationError("The staff member is unavailable on this date")
    in_exception_hours = end.date() == start.date() and any(e.covers(start.time(), end.time()) for e in exceptions)
    if not in_exception_hours and any(e.exception_type == ExceptionType.modified_hours for e in exceptions):
        raise ValidationError("The requested time is outside the staff member's hours for this date")

    slot = availability_crud.find_covering_slot(db, appointee_id, start, end, lock=True)
    if slot is None and not in_exception_hours:
        raise ValidationError("The requested time is outside the staff member's availability")
    capacity = slot.max_appointments_per_slot if slot else 1
    booked = appointment_crud.count_overlapping(
        db, appointee_id, start, end,
        buffer_minutes=(slot.buffer_time_minutes or 0) if slot else 0,
        exclude_id=exclude_id,
    )
    if booked >= capacity:
        raise ConflictError("This time slot is fully booked")
    return slot


def _validate_appointee(db: Session, appointee_id: int, requester_id: int):
    if appointee_id == requester_id:
        raise ValidationError("You cannot book an appointment with yourself")
    appointee = user_crud.get_user(db, appointee_id)
    if not appointee:
        raise NotFoundError("Appointee not found")
    if not is_appointee_role(appointee.role):
        raise ValidationError("Appointments can only be booked with lecturers or administrators")
    if appointee.status != UserStatus.active:
        raise ValidationError("This staff member is not accepting appointments")
    return appointee


# ---------------------------------------------------------
# OPERATIONS
# ---------------------------------------------------------

def create_appointment(
    db: Session,
    requester_id: int,
    appointment_in: AppointmentCreate,
    notifier: NotificationService,
) -> Appointment:
    """
    Book appointment_in.appointee_id for requester_id.

    Slot lookup, capacity count and insert share one transaction with the slot
    row locked, so two bookings for the last seat cannot both succeed.
    """
    appointee = _validate_appointee(db, appointment_in.appointee_id, requester_id)
    start = to_utc_naive(appointment_in.appointment_time)
    if start <= utcnow():
        raise ValidationError("Appointment time must be in the future")

    data = appointment_in.model_dump(exclude={"appointee_id", "appointment_time", "requester_id"})
    try:
        ensure_bookable(db, appointee.id, start, appointment_in.duration_minutes)
        db_appointment = Appointment(
            requester_id=requester_id,
            appointee_id=appointee.id,
            appointment_time=start,
            status=S.pending,
            **data,
        )
        db.add(db_appointment)
        db.commit()
    except AppError:
        db.rollback()
        raise
    db.refresh(db_appointment)
    logger.info(f"Appointment {db_appointment.id} booked by user {requester_id} with user {appointee.id}")

    notifier.create_and_send(
        user_id=appointee.id,
        type="appointment_new",
        content=f"New appointment request for {_format_when(start)}.",
        source_table="appointments",
        source_id=db_appointment.id,
        source_details={"requester_id": requester_id, "reason": db_appointment.reason},
    )
    return db_appointment


def update_status(
    db: Session,
    appointment_id: int,
    status_in: AppointmentStatusUpdate,
    current_user: AuthenticatedUser,
    notifier: NotificationService,
) -> Appointment:
    """
    Move an appointment to status_in.status.

    Checks run in this order: known status, row exists, caller is a party or
    admin, caller may drive this target, transition is legal from the current
    status.
    """
    target = parse_status(status_in.status)
    db_appointment = get_appointment_for_user(db, appointment_id, current_user)

    admin = is_admin(current_user.role)
    if not admin:
        if target in APPOINTEE_TARGETS and current_user.id != db_appointment.appointee_id:
            raise AuthorizationError(f"Only the appointee or an admin can set status to '{target.value}'")
        if target in REQUESTER_TARGETS and current_user.id != db_appointment.requester_id:
            raise AuthorizationError("Only the requester or an admin can cancel this appointment")

    current = AppointmentStatus(db_appointment.status)
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Cannot change appointment status from '{current.value}' to '{target.value}'")

    update_data = {"status": target}
    message = status_in.response_message or status_in.reason
    if message:
        update_data["response_message"] = message
    if target in (S.accepted, S.declined, S.rescheduled):
        update_data["responded_at"] = utcnow()
    if target == S.cancelled and admin and current_user.id != db_appointment.requester_id:
        note = f"Cancelled by administrator: {status_in.reason or 'no reason given'}"
        update_data["notes"] = f"{db_appointment.notes}\n{note}" if db_appointment.notes else note

    try:
        if target == S.rescheduled:
            if status_in.new_appointment_time is None:
                raise ValidationError("new_appointment_time is required to reschedule")
            new_time = to_utc_naive(status_in.new_appointment_time)
            if new_time <= utcnow():
                raise ValidationError("Appointment time must be in the future")
            ensure_bookable(db, db_appointment.appointee_id, new_time, db_appointment.duration_minutes, exclude_id=db_appointment.id)
            update_data["appointment_time"] = new_time
            update_data["reminder_sent_at"] = None
        db_appointment = appointment_crud.update_appointment(db, db_appointment, update_data)
    except AppError:
        db.rollback()
        raise
    logger.info(f"Appointment {appointment_id}: {current.value} -> {target.value} by user {current_user.id}")

    _notify_status_change(db_appointment, target, current_user, notifier)
    return db_appointment


def _status_recipients(appointment: Appointment, actor: AuthenticatedUser) -> List[int]:
    if is_admin(actor.role) and not is_party(appointment, actor.id):
        return [appointment.requester_id, appointment.appointee_id]
    if actor.id == appointment.appointee_id:
        return [appointment.requester_id]
    return [appointment.appointee_id]


def _notify_status_change(
    appointment: Appointment,
    target: AppointmentStatus,
    actor: AuthenticatedUser,
    notifier: NotificationService,
) -> None:
    content = STATUS_MESSAGES[target].format(when=_format_when(appointment.appointment_time))
    if appointment.response_message:
        content = f"{content} Message: {appointment.response_message}"
    notifier.notify_many(
        _status_recipients(appointment, actor),
        type=f"appointment_{target.value}",
        content=content,
        source_table="appointments",
        source_id=appointment.id,
        source_details={"status": target.value, "changed_by": actor.id},
    )


def cancel_appointment(
    db: Session,
    appointment_id: int,
    current_user: AuthenticatedUser,
    notifier: NotificationService,
    reason: Optional[str] = None,
) -> Appointment:
    return update_status(
        db,
        appointment_id,
        AppointmentStatusUpdate(status=S.cancelled.value, reason=reason),
        current_user,
        notifier,
    )


def update_appointment_details(db: Session, appointment_id: int, update_data: dict) -> Appointment:
    """Admin edit of non-status fields; a new time or duration is re-checked against capacity."""
    db_appointment = get_appointment_or_404(db, appointment_id)
    if update_data.get("appointment_time") is not None:
        update_data["appointment_time"] = to_utc_naive(update_data["appointment_time"])
        if update_data["appointment_time"] <= utcnow():
            raise ValidationError("Appointment time must be in the future")
    timing_changed = any(key in update_data for key in ("appointment_time", "duration_minutes"))
    try:
        if timing_changed and db_appointment.status in (S.pending, S.accepted, S.rescheduled):
            ensure_bookable(
                db,
                db_appointment.appointee_id,
                update_data.get("appointment_time") or db_appointment.appointment_time,
                update_data.get("duration_minutes") or db_appointment.duration_minutes,
                exclude_id=db_appointment.id,
            )
        return appointment_crud.update_appointment(db, db_appointment, update_data)
    except AppError:
        db.rollback()
        raise


def delete_appointment(db: Session, appointment_id: int) -> None:
    db_appointment = get_appointment_or_404(db, appointment_id)
    appointment_crud.delete_appointment(db, db_appointment)
    logger.info(f"Appointment {appointment_id} deleted")


# ---------------------------------------------------------
# LISTING
# ---------------------------------------------------------

def list_for_requester(db: Session, user_id: int, status: Optional[str], page: int, limit: int) -> Tuple[List[Appointment], dict]:
    rows, total = appointment_crud.list_for_requester(
        db, user_id, status=parse_status(status) if status else None, page=page, limit=limit
    )
    return rows, build_pagination(page, limit, total)


def list_for_appointee(db: Session, user_id: int, status: Optional[str], page: int, limit: int) -> Tuple[List[Appointment], dict]:
    rows, total = appointment_crud.list_for_appointee(
        db, user_id, status=parse_status(status) if status else None, page=page, limit=limit
    )
    return rows, build_pagination(page, limit, total)


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def list_all(
    db: Session,
    status: Optional[str] = None,
    date: Optional[dt_date] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    lecturer: Optional[str] = None,
    student: Optional[str] = None,
    q: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Appointment], dict]:
    """
    Admin listing. status and date filters run in the store; lecturer, student
    and q substring filters run on the fetched page, so a page can come back
    shorter than `limit` while the pagination totals still describe the
    unfiltered query.
    """
    if date:
        date_from, date_to = day_bounds(date)
    rows, total = appointment_crud.list_all(
        db,
        status=parse_status(status) if status else None,
        date_from=to_utc_naive(date_from) if date_from else None,
        date_to=to_utc_naive(date_to) if date_to else None,
        page=page,
        limit=limit,
    )
    if lecturer:
        needle = lecturer.lower()
        rows = [row for row in rows if row.appointee and _contains(row.appointee.name, needle)]
    if student:
        needle = student.lower()
        rows = [row for row in rows if row.requester and _contains(row.requester.name, needle)]
    if q:
        needle = q.lower()
        rows = [
            row for row in rows
            if _contains(row.reason, needle)
            or (row.requester and _contains(row.requester.name, needle))
            or (row.appointee and _contains(row.appointee.name, needle))
        ]
    return rows, build_pagination(page, limit, total)


def list_pending_for_appointee(db: Session, user_id: int, page: int, limit: int) -> Tuple[List[Appointment], dict]:
    rows, total = appointment_crud.list_for_appointee(db, user_id, status=S.pending, page=page, limit=limit)
    return rows, build_pagination(page, limit, total)


def list_upcoming_for_appointee(db: Session, user_id: int, limit: int = 10) -> List[Appointment]:
    return appointment_crud.list_upcoming_for_appointee(db, user_id, utcnow(), limit=limit)


def get_stats(db: Session, user_id: Optional[int] = None, as_appointee: bool = False) -> dict:
    by_status = appointment_crud.status_counts(db, user_id=user_id, as_appointee=as_appointee)
    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "upcoming": appointment_crud.count_upcoming(db, utcnow(), user_id=user_id, as_appointee=as_appointee),
    }
