from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import get_current_active_user
from campus_connect.api.auth.permissions import is_appointee_role
from campus_connect.crud import availability_crud, user_crud
from campus_connect.exceptions import NotFoundError
from campus_connect.schemas import availability_schema
from campus_connect.schemas.common_schema import Envelope

router = APIRouter(dependencies=[Depends(get_current_active_user)])


@router.get(
    "",
    response_model=Envelope[List[availability_schema.AvailabilityRead]],
    summary="Active availability slots, optionally for one staff member",
)
def browse_availability(
    staff_id: Optional[int] = Query(None),
    db: Session = Depends(deps.get_db),
):
    slots = availability_crud.list_active(db, staff_ids=[staff_id] if staff_id is not None else None)
    return {"success": True, "data": slots}


@router.get(
    "/staff/{staff_id}",
    response_model=Envelope[List[availability_schema.AvailabilityRead]],
    summary="Active slots of a lecturer or administrator",
)
def staff_availability(staff_id: int, db: Session = Depends(deps.get_db)):
    db_staff = user_crud.get_user(db, staff_id)
    if not db_staff or not is_appointee_role(db_staff.role):
        raise NotFoundError("Staff member not found")
    return {"success": True, "data": availability_crud.list_active(db, staff_ids=[staff_id])}
