# campus_connect/api/endpoints/staff_route.py
"""
Routes shared by lecturers and administrators. The same router is mounted
under /api/lecturer and /api/administrator.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import require_capability
from campus_connect.api.auth.permissions import Capability
from campus_connect.models.availability_model import ExceptionType
from campus_connect.schemas import appointment_schema, availability_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.services import appointment_service, availability_service
from campus_connect.services.notification_service import NotificationService

router = APIRouter()

STAFF_ONLY = require_capability(Capability.ACCESS_STAFF_PORTAL)


# ---------------------------------------------------------
# APPOINTMENTS
# ---------------------------------------------------------

@router.get(
    "/appointments",
    response_model=Envelope[List[appointment_schema.AppointmentRead]],
    summary="Appointments booked with me",
)
def list_my_appointments(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    rows, pagination = appointment_service.list_for_appointee(db, current_user.id, status_filter, page, limit)
    return {"success": True, "data": rows, "pagination": pagination}


@router.post(
    "/appointments",
    response_model=Envelope[appointment_schema.AppointmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment with another staff member",
)
def book_appointment(
    appointment_in: appointment_schema.AppointmentCreate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    db_appointment = appointment_service.create_appointment(db, current_user.id, appointment_in, notifier)
    return {"success": True, "message": "Appointment booked successfully", "data": db_appointment}


@router.get(
    "/appointments/pending",
    response_model=Envelope[List[appointment_schema.AppointmentRead]],
    summary="Requests waiting for my answer",
)
def list_pending(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    rows, pagination = appointment_service.list_pending_for_appointee(db, current_user.id, page, limit)
    return {"success": True, "data": rows, "pagination": pagination}


@router.get(
    "/appointments/upcoming",
    response_model=Envelope[List[appointment_schema.AppointmentRead]],
    summary="My next confirmed appointments",
)
def list_upcoming(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    return {"success": True, "data": appointment_service.list_upcoming_for_appointee(db, current_user.id, limit)}


@router.get(
    "/appointments/stats",
    response_model=Envelope[appointment_schema.AppointmentStats],
    summary="Counts of appointments booked with me",
)
def my_stats(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    return {"success": True, "data": appointment_service.get_stats(db, user_id=current_user.id, as_appointee=True)}


@router.get(
    "/appointments/{appointment_id}",
    response_model=Envelope[appointment_schema.AppointmentRead],
    summary="Appointment details",
)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    return {"success": True, "data": appointment_service.get_appointment_for_user(db, appointment_id, current_user)}


@router.put(
    "/appointments/{appointment_id}/status",
    response_model=Envelope[appointment_schema.AppointmentRead],
    summary="Accept, decline, complete, reschedule or cancel",
)
def update_appointment_status(
    appointment_id: int,
    status_in: appointment_schema.AppointmentStatusUpdate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    db_appointment = appointment_service.update_status(db, appointment_id, status_in, current_user, notifier)
    return {"success": True, "message": f"Appointment {db_appointment.status.value}", "data": db_appointment}


@router.delete(
    "/appointments/{appointment_id}",
    response_model=Envelope[appointment_schema.AppointmentRead],
    summary="Cancel an appointment I requested",
)
def cancel_appointment(
    appointment_id: int,
    cancel_in: Optional[appointment_schema.AppointmentCancel] = Body(None),
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    reason = cancel_in.reason if cancel_in else None
    db_appointment = appointment_service.cancel_appointment(db, appointment_id, current_user, notifier, reason)
    return {"success": True, "message": "Appointment cancelled", "data": db_appointment}


# ---------------------------------------------------------
# AVAILABILITY
# ---------------------------------------------------------

@router.get(
    "/availability",
    response_model=Envelope[List[availability_schema.AvailabilityRead]],
    summary="My availability slots",
)
def list_my_availability(
    is_active: Optional[bool] = Query(None),
    day_of_week: Optional[int] = Query(None, ge=0, le=6),
    availability_type: Optional[str] = Query(None),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    slots = availability_service.list_for_staff(
        db, current_user.id, is_active=is_active, day_of_week=day_of_week, availability_type=availability_type
    )
    return {"success": True, "data": slots}


@router.post(
    "/availability",
    response_model=Envelope[availability_schema.AvailabilityRead],
    status_code=status.HTTP_201_CREATED,
    summary="Publish an availability slot",
)
def create_availability(
    slot_in: availability_schema.AvailabilityCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    db_slot = availability_service.create_slot(db, current_user.id, slot_in.model_dump())
    return {"success": True, "message": "Availability created", "data": db_slot}


@router.post(
    "/availability/bulk",
    response_model=Envelope[List[availability_schema.AvailabilityRead]],
    status_code=status.HTTP_201_CREATED,
    summary="Publish several availability slots",
)
def bulk_create_availability(
    bulk_in: availability_schema.AvailabilityBulkCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    db_slots = availability_service.bulk_create(db, current_user.id, [slot.model_dump() for slot in bulk_in.slots])
    return {"success": True, "message": f"{len(db_slots)} availability slots created", "data": db_slots}


@router.get(
    "/availability/summary",
    response_model=Envelope[availability_schema.AvailabilitySummary],
    summary="Overview of my availability",
)
def availability_summary(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    return {"success": True, "data": availability_service.get_summary(db, current_user.id)}


# Declared before "/availability/{slot_id}"
@router.get(
    "/availability/exceptions",
    response_model=Envelope[List[availability_schema.AvailabilityExceptionRead]],
    summary="My availability exceptions",
)
def list_availability_exceptions(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    exception_type: Optional[ExceptionType] = Query(None),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    rows = availability_service.list_exceptions(
        db, current_user.id, start_date=start_date, end_date=end_date, exception_type=exception_type
    )
    return {"success": True, "data": rows}


@router.post(
    "/availability/exceptions",
    response_model=Envelope[availability_schema.AvailabilityExceptionRead],
    status_code=status.HTTP_201_CREATED,
    summary="Block a date or change its hours",
)
def create_availability_exception(
    exception_in: availability_schema.AvailabilityExceptionCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    db_exception = availability_service.create_exception(db, current_user.id, exception_in.model_dump())
    return {"success": True, "message": "Availability exception created", "data": db_exception}


@router.get(
    "/availability/exceptions/upcoming",
    response_model=Envelope[List[availability_schema.AvailabilityExceptionRead]],
    summary="My exceptions in the coming days",
)
def upcoming_availability_exceptions(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    return {"success": True, "data": availability_service.list_upcoming_exceptions(db, current_user.id, days)}


@router.put(
    "/availability/exceptions/{exception_id}",
    response_model=Envelope[availability_schema.AvailabilityExceptionRead],
    summary="Update one of my exceptions",
)
def update_availability_exception(
    exception_id: int,
    exception_in: availability_schema.AvailabilityExceptionUpdate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    db_exception = availability_service.update_own_exception(
        db, exception_id, current_user.id, exception_in.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Availability exception updated", "data": db_exception}


@router.delete(
    "/availability/exceptions/{exception_id}",
    response_model=Envelope[dict],
    summary="Delete one of my exceptions",
)
def delete_availability_exception(
    exception_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    availability_service.delete_own_exception(db, exception_id, current_user.id)
    return {"success": True, "message": "Availability exception deleted"}


@router.put(
    "/availability/{slot_id}",
    response_model=Envelope[availability_schema.AvailabilityRead],
    summary="Update one of my slots",
)
def update_availability(
    slot_id: int,
    slot_in: availability_schema.AvailabilityUpdate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    db_slot = availability_service.update_own_slot(db, slot_id, current_user.id, slot_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Availability updated", "data": db_slot}


@router.patch(
    "/availability/{slot_id}/toggle",
    response_model=Envelope[availability_schema.AvailabilityRead],
    summary="Switch a slot on or off",
)
def toggle_availability(
    slot_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    db_slot = availability_service.toggle_own_slot(db, slot_id, current_user.id)
    return {"success": True, "message": "Availability toggled", "data": db_slot}


@router.delete(
    "/availability/{slot_id}",
    response_model=Envelope[dict],
    summary="Delete one of my slots",
)
def delete_availability(
    slot_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STAFF_ONLY),
):
    availability_service.delete_own_slot(db, slot_id, current_user.id)
    return {"success": True, "message": "Availability deleted"}
