from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from campus_connect.models.event_model import Event, EventAttendee, RsvpStatus


def get_event(db: Session, event_id: int) -> Optional[Event]:
    return db.query(Event).filter(Event.id == event_id).first()


def list_events(db: Session, upcoming_from: Optional[datetime] = None, skip: int = 0, limit: int = 50) -> List[Event]:
    query = db.query(Event)
    if upcoming_from:
        query = query.filter(Event.start_time >= upcoming_from)
    return query.order_by(Event.start_time.asc()).offset(skip).limit(limit).all()


def create_event(db: Session, organizer_id: int, event_data: dict) -> Event:
    db_event = Event(organizer_id=organizer_id, **event_data)
    db.add(db_event)
    db.commit()
    db.refresh(db_event)
    return db_event


def update_event(db: Session, db_event: Event, update_data: dict) -> Event:
    for key, value in update_data.items():
        setattr(db_event, key, value)
    db.commit()
    db.refresh(db_event)
    return db_event


def delete_event(db: Session, db_event: Event) -> None:
    db.query(EventAttendee).filter(EventAttendee.event_id == db_event.id).delete(synchronize_session=False)
    db.delete(db_event)
    db.commit()


def get_attendance(db: Session, event_id: int, user_id: int) -> Optional[EventAttendee]:
    return db.query(EventAttendee).filter(EventAttendee.event_id == event_id, EventAttendee.user_id == user_id).first()


def count_going(db: Session, event_id: int) -> int:
    return db.query(EventAttendee).filter(
        EventAttendee.event_id == event_id,
        EventAttendee.status == RsvpStatus.going,
    ).count()


def upsert_rsvp(db: Session, event_id: int, user_id: int, status: RsvpStatus) -> EventAttendee:
    db_rsvp = get_attendance(db, event_id, user_id)
    if db_rsvp:
        db_rsvp.status = status
    else:
        db_rsvp = EventAttendee(event_id=event_id, user_id=user_id, status=status)
        db.add(db_rsvp)
    db.commit()
    db.refresh(db_rsvp)
    return db_rsvp


def attendee_ids(db: Session, event_id: int) -> List[int]:
    rows = db.query(EventAttendee.user_id).filter(
        EventAttendee.event_id == event_id,
        EventAttendee.status != RsvpStatus.not_going,
    ).all()
    return [row.user_id for row in rows]
