# campus_connect/services/event_service.py
from sqlalchemy.orm import Session

from campus_connect.api.auth.permissions import is_admin
from campus_connect.crud import event_crud
from campus_connect.exceptions import AuthorizationError, NotFoundError, ValidationError
from campus_connect.models.event_model import Event, RsvpStatus
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.service_helper import to_utc_naive


def get_event_or_404(db: Session, event_id: int) -> Event:
    db_event = event_crud.get_event(db, event_id)
    if not db_event:
        raise NotFoundError("Event not found")
    return db_event


def _normalize_times(data: dict) -> dict:
    for key in ("start_time", "end_time"):
        if data.get(key) is not None:
            data[key] = to_utc_naive(data[key])
    return data


def create_event(db: Session, organizer_id: int, event_data: dict) -> Event:
    return event_crud.create_event(db, organizer_id, _normalize_times(event_data))


def update_event(
    db: Session,
    event_id: int,
    update_data: dict,
    current_user: AuthenticatedUser,
    notifier: NotificationService,
) -> Event:
    """Organizer or admin edit; everyone who RSVP'd is notified."""
    db_event = get_event_or_404(db, event_id)
    if db_event.organizer_id != current_user.id and not is_admin(current_user.role):
        raise AuthorizationError("Only the organizer or an admin can update this event")
    update_data = _normalize_times(update_data)
    start = update_data.get("start_time", db_event.start_time)
    end = update_data.get("end_time", db_event.end_time)
    if end is not None and end <= start:
        raise ValidationError("end_time must be after start_time")

    db_event = event_crud.update_event(db, db_event, update_data)
    recipients = [uid for uid in event_crud.attendee_ids(db, db_event.id) if uid != current_user.id]
    notifier.notify_many(
        recipients,
        type="event_update",
        content=f'The event "{db_event.title}" has been updated.',
        source_table="events",
        source_id=db_event.id,
        source_details={"fields": sorted(update_data.keys())},
    )
    return db_event


def delete_event(db: Session, event_id: int, current_user: AuthenticatedUser) -> None:
    db_event = get_event_or_404(db, event_id)
    if db_event.organizer_id != current_user.id and not is_admin(current_user.role):
        raise AuthorizationError("Only the organizer or an admin can delete this event")
    event_crud.delete_event(db, db_event)


def rsvp(db: Session, event_id: int, user_id: int, status: RsvpStatus):
    db_event = get_event_or_404(db, event_id)
    if status == RsvpStatus.going and db_event.capacity:
        current = event_crud.get_attendance(db, event_id, user_id)
        already_going = current is not None and current.status == RsvpStatus.going
        if not already_going and event_crud.count_going(db, event_id) >= db_event.capacity:
            raise ValidationError("This event is at full capacity")
    return event_crud.upsert_rsvp(db, event_id, user_id, status)
