from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import require_capability
from campus_connect.api.auth.permissions import Capability
from campus_connect.schemas import appointment_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.services import appointment_service
from campus_connect.services.notification_service import NotificationService

router = APIRouter()

STUDENT_ONLY = require_capability(Capability.ACCESS_STUDENT_PORTAL)


@router.post(
    "/appointments",
    response_model=Envelope[appointment_schema.AppointmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
def book_appointment(
    appointment_in: appointment_schema.AppointmentCreate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(STUDENT_ONLY),
):
    db_appointment = appointment_service.create_appointment(db, current_user.id, appointment_in, notifier)
    return {"success": True, "message": "Appointment booked successfully", "data": db_appointment}


@router.get(
    "/appointments",
    response_model=Envelope[List[appointment_schema.AppointmentRead]],
    summary="My appointments",
)
def list_my_appointments(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STUDENT_ONLY),
):
    rows, pagination = appointment_service.list_for_requester(db, current_user.id, status_filter, page, limit)
    return {"success": True, "data": rows, "pagination": pagination}


@router.get(
    "/appointments/stats",
    response_model=Envelope[appointment_schema.AppointmentStats],
    summary="Counts of my appointments by status",
)
def my_appointment_stats(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STUDENT_ONLY),
):
    return {"success": True, "data": appointment_service.get_stats(db, user_id=current_user.id)}


@router.get(
    "/appointments/{appointment_id}",
    response_model=Envelope[appointment_schema.AppointmentRead],
    summary="Appointment details",
)
def get_my_appointment(
    appointment_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(STUDENT_ONLY),
):
    db_appointment = appointment_service.get_appointment_for_user(db, appointment_id, current_user)
    return {"success": True, "data": db_appointment}


@router.delete(
    "/appointments/{appointment_id}",
    response_model=Envelope[appointment_schema.AppointmentRead],
    summary="Cancel one of my appointments",
)
def cancel_my_appointment(
    appointment_id: int,
    cancel_in: Optional[appointment_schema.AppointmentCancel] = Body(None),
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(STUDENT_ONLY),
):
    """Sets the status to `cancelled`; the row is kept."""
    reason = cancel_in.reason if cancel_in else None
    db_appointment = appointment_service.cancel_appointment(db, appointment_id, current_user, notifier, reason)
    return {"success": True, "message": "Appointment cancelled", "data": db_appointment}
