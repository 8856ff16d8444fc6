# campus_connect/services/availability_service.py
import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from campus_connect.api.auth.permissions import is_appointee_role
from campus_connect.crud import availability_crud, user_crud
from campus_connect.crud.ownership import raise_for_outcome
from campus_connect.exceptions import NotFoundError, ValidationError
from campus_connect.models.availability_model import ExceptionType, StaffAvailability, StaffAvailabilityException
from campus_connect.schemas.availability_schema import check_exception_hours
from campus_connect.services.service_helper import utcnow

logger = logging.getLogger(__name__)


def _require_staff(db: Session, staff_id: int):
    staff = user_crud.get_user(db, staff_id)
    if not staff:
        raise NotFoundError("Staff member not found")
    if not is_appointee_role(staff.role):
        raise ValidationError("Availability can only be published for lecturers or administrators")
    return staff


def _check_window(db_slot: StaffAvailability, update_data: dict) -> None:
    start = update_data.get("start_time", db_slot.start_time)
    end = update_data.get("end_time", db_slot.end_time)
    if end <= start:
        raise ValidationError("end_time must be after start_time")
    day = update_data.get("day_of_week", db_slot.day_of_week)
    specific = update_data.get("specific_date", db_slot.specific_date)
    if day is None and specific is None:
        raise ValidationError("Either day_of_week or specific_date is required")


def create_slot(db: Session, staff_id: int, slot_data: dict) -> StaffAvailability:
    _require_staff(db, staff_id)
    db_slot = availability_crud.create_slot(db, staff_id, slot_data)
    logger.info(f"Availability slot {db_slot.id} created for staff {staff_id}")
    return db_slot


def bulk_create(db: Session, staff_id: int, slots: List[dict]) -> List[StaffAvailability]:
    _require_staff(db, staff_id)
    db_slots = availability_crud.bulk_create_slots(db, staff_id, slots)
    logger.info(f"{len(db_slots)} availability slots created for staff {staff_id}")
    return db_slots


def update_own_slot(db: Session, slot_id: int, staff_id: int, update_data: dict) -> StaffAvailability:
    db_slot = raise_for_outcome(
        availability_crud.find_owned_slot(db, slot_id, staff_id), "Availability slot"
    )
    _check_window(db_slot, update_data)
    return availability_crud.update_slot(db, db_slot, update_data)


def toggle_own_slot(db: Session, slot_id: int, staff_id: int) -> StaffAvailability:
    return raise_for_outcome(availability_crud.toggle_owned_slot(db, slot_id, staff_id), "Availability slot")


def delete_own_slot(db: Session, slot_id: int, staff_id: int) -> None:
    raise_for_outcome(availability_crud.delete_owned_slot(db, slot_id, staff_id), "Availability slot")
    logger.info(f"Availability slot {slot_id} deleted by staff {staff_id}")


def update_any_slot(db: Session, slot_id: int, update_data: dict) -> StaffAvailability:
    db_slot = availability_crud.get_slot(db, slot_id)
    if not db_slot:
        raise NotFoundError("Availability slot not found")
    _check_window(db_slot, update_data)
    return availability_crud.update_slot(db, db_slot, update_data)


def delete_any_slot(db: Session, slot_id: int) -> None:
    db_slot = availability_crud.get_slot(db, slot_id)
    if not db_slot:
        raise NotFoundError("Availability slot not found")
    availability_crud.delete_slot(db, db_slot)


def list_for_staff(
    db: Session,
    staff_id: int,
    is_active: Optional[bool] = None,
    day_of_week: Optional[int] = None,
    availability_type: Optional[str] = None,
) -> List[StaffAvailability]:
    return availability_crud.list_by_staff(
        db, staff_id, is_active=is_active, day_of_week=day_of_week, availability_type=availability_type
    )


def get_summary(db: Session, staff_id: int) -> dict:
    slots = availability_crud.list_by_staff(db, staff_id)
    active = [slot for slot in slots if slot.is_active]
    return {
        "staff_id": staff_id,
        "total_slots": len(slots),
        "active_slots": len(active),
        "days_covered": sorted({slot.day_of_week for slot in active if slot.day_of_week is not None}),
        "specific_dates": sorted({slot.specific_date for slot in active if slot.specific_date is not None}),
        "availability_types": sorted({slot.availability_type for slot in slots}),
    }


# ---------------------------------------------------------
# EXCEPTIONS
# ---------------------------------------------------------

def create_exception(db: Session, staff_id: int, exception_data: dict) -> StaffAvailabilityException:
    _require_staff(db, staff_id)
    db_exception = availability_crud.create_exception(db, staff_id, exception_data)
    logger.info(
        f"Availability exception {db_exception.id} created for staff {staff_id}: "
        f"{db_exception.exception_date} ({db_exception.exception_type.value})"
    )
    return db_exception


def list_exceptions(
    db: Session,
    staff_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    exception_type: Optional[ExceptionType] = None,
) -> List[StaffAvailabilityException]:
    if start_date and end_date and end_date < start_date:
        raise ValidationError("end_date must not be before start_date")
    return availability_crud.list_exceptions(
        db, staff_id, start_date=start_date, end_date=end_date, exception_type=exception_type
    )


def list_upcoming_exceptions(db: Session, staff_id: int, days: int = 30) -> List[StaffAvailabilityException]:
    today = utcnow().date()
    return availability_crud.list_exceptions(db, staff_id, start_date=today, end_date=today + timedelta(days=days))


def update_own_exception(
    db: Session, exception_id: int, staff_id: int, update_data: dict
) -> StaffAvailabilityException:
    db_exception = raise_for_outcome(
        availability_crud.find_owned_exception(db, exception_id, staff_id), "Availability exception"
    )
    exception_type = update_data.get("exception_type", db_exception.exception_type)
    if exception_type == ExceptionType.unavailable:
        # a whole-day block carries no hours
        update_data.setdefault("start_time", None)
        update_data.setdefault("end_time", None)
    try:
        check_exception_hours(
            exception_type,
            update_data.get("start_time", db_exception.start_time),
            update_data.get("end_time", db_exception.end_time),
        )
    except ValueError as exc:
        raise ValidationError(str(exc))
    return availability_crud.update_exception(db, db_exception, update_data)


def delete_own_exception(db: Session, exception_id: int, staff_id: int) -> None:
    raise_for_outcome(
        availability_crud.delete_owned_exception(db, exception_id, staff_id), "Availability exception"
    )
    logger.info(f"Availability exception {exception_id} deleted by staff {staff_id}")
