from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from campus_connect.crud.ownership import OwnedMutation, find_owned
from campus_connect.models.availability_model import ExceptionType, StaffAvailability, StaffAvailabilityException
from campus_connect.services.service_helper import day_of_week_sunday_first


def get_slot(db: Session, slot_id: int) -> Optional[StaffAvailability]:
    return db.query(StaffAvailability).filter(StaffAvailability.id == slot_id).first()


def create_slot(db: Session, staff_id: int, slot_data: dict) -> StaffAvailability:
    db_slot = StaffAvailability(staff_id=staff_id, **slot_data)
    db.add(db_slot)
    db.commit()
    db.refresh(db_slot)
    return db_slot


def bulk_create_slots(db: Session, staff_id: int, slots: List[dict]) -> List[StaffAvailability]:
    """Insert every slot in one commit, all owned by staff_id."""
    db_slots = [StaffAvailability(staff_id=staff_id, **data) for data in slots]
    db.add_all(db_slots)
    db.commit()
    for db_slot in db_slots:
        db.refresh(db_slot)
    return db_slots


def list_by_staff(
    db: Session,
    staff_id: int,
    is_active: Optional[bool] = None,
    day_of_week: Optional[int] = None,
    availability_type: Optional[str] = None,
) -> List[StaffAvailability]:
    query = db.query(StaffAvailability).filter(StaffAvailability.staff_id == staff_id)
    if is_active is not None:
        query = query.filter(StaffAvailability.is_active == is_active)
    if day_of_week is not None:
        query = query.filter(StaffAvailability.day_of_week == day_of_week)
    if availability_type:
        query = query.filter(StaffAvailability.availability_type == availability_type)
    return query.order_by(
        StaffAvailability.day_of_week,
        StaffAvailability.specific_date,
        StaffAvailability.start_time,
    ).all()


def list_active(db: Session, staff_ids: Optional[List[int]] = None) -> List[StaffAvailability]:
    query = db.query(StaffAvailability).filter(StaffAvailability.is_active.is_(True))
    if staff_ids is not None:
        query = query.filter(StaffAvailability.staff_id.in_(staff_ids))
    return query.order_by(
        StaffAvailability.staff_id,
        StaffAvailability.day_of_week,
        StaffAvailability.start_time,
    ).all()


def find_covering_slot(
    db: Session,
    staff_id: int,
    start: datetime,
    end: datetime,
    lock: bool = False,
) -> Optional[StaffAvailability]:
    """
    Active slot of staff_id whose window covers [start, end) on start's date.
    Date-specific slots win over recurring ones. With lock=True the row is
    selected FOR UPDATE so concurrent bookings on it serialize.
    """
    if end.date() != start.date():
        return None
    query = db.query(StaffAvailability).filter(
        StaffAvailability.staff_id == staff_id,
        StaffAvailability.is_active.is_(True),
        or_(
            StaffAvailability.specific_date == start.date(),
            and_(
                StaffAvailability.specific_date.is_(None),
                StaffAvailability.day_of_week == day_of_week_sunday_first(start.date()),
            ),
        ),
        StaffAvailability.start_time <= start.time(),
        StaffAvailability.end_time >= end.time(),
    ).order_by(StaffAvailability.specific_date.is_(None), StaffAvailability.id)
    if lock:
        query = query.with_for_update()
    return query.first()


def update_slot(db: Session, db_slot: StaffAvailability, update_data: dict) -> StaffAvailability:
    for key, value in update_data.items():
        setattr(db_slot, key, value)
    db.add(db_slot)
    db.commit()
    db.refresh(db_slot)
    return db_slot


def find_owned_slot(db: Session, slot_id: int, staff_id: int) -> OwnedMutation:
    return find_owned(db, StaffAvailability, slot_id, StaffAvailability.staff_id, staff_id)


def toggle_owned_slot(db: Session, slot_id: int, staff_id: int) -> OwnedMutation:
    result = find_owned(db, StaffAvailability, slot_id, StaffAvailability.staff_id, staff_id)
    if result.applied:
        result.row = update_slot(db, result.row, {"is_active": not result.row.is_active})
    return result


def delete_owned_slot(db: Session, slot_id: int, staff_id: int) -> OwnedMutation:
    result = find_owned(db, StaffAvailability, slot_id, StaffAvailability.staff_id, staff_id)
    if result.applied:
        db.delete(result.row)
        db.commit()
    return result


def delete_slot(db: Session, db_slot: StaffAvailability) -> None:
    db.delete(db_slot)
    db.commit()


# ---------------------------------------------------------
# EXCEPTIONS
# ---------------------------------------------------------

def create_exception(db: Session, staff_id: int, exception_data: dict) -> StaffAvailabilityException:
    db_exception = StaffAvailabilityException(staff_id=staff_id, **exception_data)
    db.add(db_exception)
    db.commit()
    db.refresh(db_exception)
    return db_exception


def list_exceptions(
    db: Session,
    staff_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    exception_type: Optional[ExceptionType] = None,
) -> List[StaffAvailabilityException]:
    query = db.query(StaffAvailabilityException).filter(StaffAvailabilityException.staff_id == staff_id)
    if start_date:
        query = query.filter(StaffAvailabilityException.exception_date >= start_date)
    if end_date:
        query = query.filter(StaffAvailabilityException.exception_date <= end_date)
    if exception_type:
        query = query.filter(StaffAvailabilityException.exception_type == exception_type)
    return query.order_by(StaffAvailabilityException.exception_date, StaffAvailabilityException.id).all()


def exceptions_on(db: Session, staff_id: int, day: date, lock: bool = False) -> List[StaffAvailabilityException]:
    query = db.query(StaffAvailabilityException).filter(
        StaffAvailabilityException.staff_id == staff_id,
        StaffAvailabilityException.exception_date == day,
    ).order_by(StaffAvailabilityException.id)
    if lock:
        query = query.with_for_update()
    return query.all()


def find_owned_exception(db: Session, exception_id: int, staff_id: int) -> OwnedMutation:
    return find_owned(
        db, StaffAvailabilityException, exception_id, StaffAvailabilityException.staff_id, staff_id
    )


def update_exception(
    db: Session, db_exception: StaffAvailabilityException, update_data: dict
) -> StaffAvailabilityException:
    for key, value in update_data.items():
        setattr(db_exception, key, value)
    db.commit()
    db.refresh(db_exception)
    return db_exception


def delete_owned_exception(db: Session, exception_id: int, staff_id: int) -> OwnedMutation:
    result = find_owned_exception(db, exception_id, staff_id)
    if result.applied:
        db.delete(result.row)
        db.commit()
    return result
