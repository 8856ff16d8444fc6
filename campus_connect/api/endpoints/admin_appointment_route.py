from datetime import date as dt_date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import require_capability
from campus_connect.api.auth.permissions import Capability
from campus_connect.crud import appointment_crud
from campus_connect.schemas import appointment_schema, availability_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.services import appointment_service, availability_service
from campus_connect.services.excel_services.export_appointments import export_appointments
from campus_connect.services.notification_service import NotificationService

router = APIRouter()

ADMIN_APPOINTMENTS = require_capability(Capability.MANAGE_ALL_APPOINTMENTS)
ADMIN_AVAILABILITY = require_capability(Capability.MANAGE_ALL_AVAILABILITY)

# Upper bound on rows written to one export
EXPORT_LIMIT = 5000


# ---------------------------------------------------------
# APPOINTMENTS
# ---------------------------------------------------------

@router.get(
    "/appointments",
    response_model=Envelope[List[appointment_schema.AppointmentRead]],
    summary="All appointments with filters",
    dependencies=[Depends(ADMIN_APPOINTMENTS)],
)
def list_appointments(
    status_filter: Optional[str] = Query(None, alias="status"),
    date: Optional[dt_date] = Query(None, description="Whole day, UTC"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    lecturer: Optional[str] = Query(None, description="Staff name contains"),
    student: Optional[str] = Query(None, description="Requester name contains"),
    q: Optional[str] = Query(None, description="Reason or names contain"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(deps.get_db),
):
    """
    `status` and the date filters are applied by the database. `lecturer`,
    `student` and `q` are applied to the returned page only, so a page may hold
    fewer than `limit` rows while `pagination` counts the unfiltered result.
    """
    rows, pagination = appointment_service.list_all(
        db,
        status=status_filter,
        date=date,
        date_from=date_from,
        date_to=date_to,
        lecturer=lecturer,
        student=student,
        q=q,
        page=page,
        limit=limit,
    )
    return {"success": True, "data": rows, "pagination": pagination}


@router.post(
    "/appointments",
    response_model=Envelope[appointment_schema.AppointmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment on behalf of a user",
    dependencies=[Depends(ADMIN_APPOINTMENTS)],
)
def create_appointment(
    appointment_in: appointment_schema.AdminAppointmentCreate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
):
    db_appointment = appointment_service.create_appointment(db, appointment_in.requester_id, appointment_in, notifier)
    return {"success": True, "message": "Appointment created", "data": db_appointment}


@router.get(
    "/appointments/stats",
    response_model=Envelope[appointment_schema.AppointmentStats],
    summary="System-wide appointment counts",
    dependencies=[Depends(ADMIN_APPOINTMENTS)],
)
def appointment_stats(db: Session = Depends(deps.get_db)):
    return {"success": True, "data": appointment_service.get_stats(db)}


@router.get(
    "/appointments/search",
    response_model=Envelope[List[appointment_schema.AppointmentRead]],
    summary="Search appointments by reason",
    dependencies=[Depends(ADMIN_APPOINTMENTS)],
)
def search_appointments(
    q: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(deps.get_db),
):
    return {"success": True, "data": appointment_crud.search_by_reason(db, q, limit=limit)}


@router.get(
    "/appointments/export",
    summary="Download appointments as Excel",
    dependencies=[Depends(ADMIN_APPOINTMENTS)],
)
def export_appointments_route(
    status_filter: Optional[str] = Query(None, alias="status"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    db: Session = Depends(deps.get_db),
):
    rows, _ = appointment_service.list_all(
        db, status=status_filter, date_from=date_from, date_to=date_to, page=1, limit=EXPORT_LIMIT
    )
    return export_appointments(rows)


@router.get(
    "/appointments/{appointment_id}",
    response_model=Envelope[appointment_schema.AppointmentRead],
    summary="Appointment details",
    dependencies=[Depends(ADMIN_APPOINTMENTS)],
)
def get_appointment(appointment_id: int, db: Session = Depends(deps.get_db)):
    return {"success": True, "data": appointment_service.get_appointment_or_404(db, appointment_id)}


@router.put(
    "/appointments/{appointment_id}",
    response_model=Envelope[appointment_schema.AppointmentRead],
    summary="Edit appointment details",
    dependencies=[Depends(ADMIN_APPOINTMENTS)],
)
def update_appointment(
    appointment_id: int,
    appointment_in: appointment_schema.AppointmentUpdate,
    db: Session = Depends(deps.get_db),
):
    db_appointment = appointment_service.update_appointment_details(
        db, appointment_id, appointment_in.model_dump(exclude_unset=True)
    )
    return {"success": True, "message": "Appointment updated", "data": db_appointment}


@router.put(
    "/appointments/{appointment_id}/status",
    response_model=Envelope[appointment_schema.AppointmentRead],
    summary="Change appointment status as admin",
)
def update_appointment_status(
    appointment_id: int,
    status_in: appointment_schema.AppointmentStatusUpdate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(ADMIN_APPOINTMENTS),
):
    db_appointment = appointment_service.update_status(db, appointment_id, status_in, current_user, notifier)
    return {"success": True, "message": f"Appointment {db_appointment.status.value}", "data": db_appointment}


@router.delete(
    "/appointments/{appointment_id}",
    response_model=Envelope[dict],
    summary="Delete an appointment permanently",
    dependencies=[Depends(ADMIN_APPOINTMENTS)],
)
def delete_appointment(appointment_id: int, db: Session = Depends(deps.get_db)):
    appointment_service.delete_appointment(db, appointment_id)
    return {"success": True, "message": "Appointment deleted"}


# ---------------------------------------------------------
# AVAILABILITY (any staff member)
# ---------------------------------------------------------

@router.get(
    "/availability",
    response_model=Envelope[List[availability_schema.AvailabilityRead]],
    summary="Availability of a staff member",
    dependencies=[Depends(ADMIN_AVAILABILITY)],
)
def list_staff_availability(
    staff_id: int = Query(...),
    is_active: Optional[bool] = Query(None),
    db: Session = Depends(deps.get_db),
):
    return {"success": True, "data": availability_service.list_for_staff(db, staff_id, is_active=is_active)}


@router.post(
    "/availability",
    response_model=Envelope[availability_schema.AvailabilityRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a slot for a staff member",
    dependencies=[Depends(ADMIN_AVAILABILITY)],
)
def create_staff_availability(
    slot_in: availability_schema.AdminAvailabilityCreate,
    db: Session = Depends(deps.get_db),
):
    data = slot_in.model_dump(exclude={"staff_id"})
    db_slot = availability_service.create_slot(db, slot_in.staff_id, data)
    return {"success": True, "message": "Availability created", "data": db_slot}


@router.put(
    "/availability/{slot_id}",
    response_model=Envelope[availability_schema.AvailabilityRead],
    summary="Update any slot",
    dependencies=[Depends(ADMIN_AVAILABILITY)],
)
def update_staff_availability(
    slot_id: int,
    slot_in: availability_schema.AvailabilityUpdate,
    db: Session = Depends(deps.get_db),
):
    db_slot = availability_service.update_any_slot(db, slot_id, slot_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Availability updated", "data": db_slot}


@router.delete(
    "/availability/{slot_id}",
    response_model=Envelope[dict],
    summary="Delete any slot",
    dependencies=[Depends(ADMIN_AVAILABILITY)],
)
def delete_staff_availability(slot_id: int, db: Session = Depends(deps.get_db)):
    availability_service.delete_any_slot(db, slot_id)
    return {"success": True, "message": "Availability deleted"}
