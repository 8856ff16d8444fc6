from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import require_capability
from campus_connect.api.auth.permissions import Capability
from campus_connect.models.user_model import UserRole, UserStatus
from campus_connect.realtime.channel import RealtimeChannel
from campus_connect.schemas import user_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.services import user_service
from campus_connect.services.service_helper import build_pagination

router = APIRouter()

MANAGE_USERS = require_capability(Capability.MANAGE_USERS)


@router.get(
    "/users",
    response_model=Envelope[List[user_schema.UserRead]],
    summary="List users",
    dependencies=[Depends(MANAGE_USERS)],
)
def list_users(
    role: Optional[UserRole] = Query(None),
    department: Optional[str] = Query(None),
    status_filter: Optional[UserStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
):
    rows, total = user_service.list_users(
        db, page=page, limit=limit, role=role, department=department, status=status_filter, search=search
    )
    return {"success": True, "data": rows, "pagination": build_pagination(page, limit, total)}


@router.post(
    "/users",
    response_model=Envelope[user_schema.UserRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a user with any role",
    dependencies=[Depends(MANAGE_USERS)],
)
def create_user(user_in: user_schema.UserCreate, db: Session = Depends(deps.get_db)):
    db_user = user_service.create_user(db, user_in.model_dump())
    return {"success": True, "message": "User created", "data": db_user}


@router.get(
    "/users/stats",
    response_model=Envelope[user_schema.UserStats],
    summary="User counts by role, department and status",
    dependencies=[Depends(MANAGE_USERS)],
)
def user_stats(db: Session = Depends(deps.get_db)):
    return {"success": True, "data": user_service.get_stats(db)}


@router.get(
    "/users/{user_id}",
    response_model=Envelope[user_schema.UserRead],
    summary="User details",
    dependencies=[Depends(MANAGE_USERS)],
)
def get_user(user_id: int, db: Session = Depends(deps.get_db)):
    return {"success": True, "data": user_service.get_user_or_404(db, user_id)}


@router.put(
    "/users/{user_id}",
    response_model=Envelope[user_schema.UserRead],
    summary="Update a user",
    dependencies=[Depends(MANAGE_USERS)],
)
def update_user(user_id: int, user_in: user_schema.UserUpdate, db: Session = Depends(deps.get_db)):
    db_user = user_service.update_user(db, user_id, user_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "User updated", "data": db_user}


@router.put(
    "/users/{user_id}/status",
    response_model=Envelope[user_schema.UserRead],
    summary="Block or unblock a user",
)
def set_user_status(
    user_id: int,
    status_in: user_schema.UserStatusUpdate,
    db: Session = Depends(deps.get_db),
    realtime: RealtimeChannel = Depends(deps.get_channel),
    current_user: AuthenticatedUser = Depends(MANAGE_USERS),
):
    db_user = user_service.set_status(db, user_id, status_in.status, current_user.id, channel=realtime)
    return {"success": True, "message": f"User {status_in.status.value}", "data": db_user}


@router.delete(
    "/users/{user_id}",
    response_model=Envelope[user_schema.CleanupReportRead],
    summary="Delete a user and everything they own",
)
def delete_user(
    user_id: int,
    db: Session = Depends(deps.get_db),
    realtime: RealtimeChannel = Depends(deps.get_channel),
    current_user: AuthenticatedUser = Depends(MANAGE_USERS),
):
    """
    Runs every cleanup step even when one fails; failed steps are listed in
    `data.failures`.
    """
    report = user_service.delete_user(db, user_id, current_user.id, channel=realtime)
    message = "User deleted" if report.user_deleted and not report.failures else "User deleted with cleanup errors"
    if not report.user_deleted:
        message = "User could not be deleted"
    return {"success": report.user_deleted, "message": message, "data": report}
