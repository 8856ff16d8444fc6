from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import get_current_active_user
from campus_connect.crud import notification_crud
from campus_connect.crud.ownership import raise_for_outcome
from campus_connect.schemas import notification_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.services.service_helper import build_pagination

router = APIRouter()


@router.get(
    "",
    response_model=Envelope[List[notification_schema.NotificationRead]],
    summary="My notifications, newest first",
)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    rows, total = notification_crud.list_for_user(db, current_user.id, page=page, limit=limit)
    return {"success": True, "data": rows, "pagination": build_pagination(page, limit, total)}


@router.get(
    "/unread",
    response_model=Envelope[List[notification_schema.NotificationRead]],
    summary="My unread notifications",
)
def list_unread(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": notification_crud.list_unread_for_user(db, current_user.id)}


@router.get(
    "/unread-count",
    response_model=Envelope[notification_schema.UnreadCount],
    summary="Number of unread notifications",
)
def unread_count(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": {"unread": notification_crud.count_unread(db, current_user.id)}}


# Must be declared before "/{notification_id}/read"
@router.put(
    "/mark-all-read",
    response_model=Envelope[notification_schema.MarkAllReadResult],
    summary="Mark every notification as read",
)
def mark_all_read(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    updated = notification_crud.mark_all_read(db, current_user.id)
    return {"success": True, "message": "All notifications marked as read", "data": {"updated": updated}}


@router.put(
    "/{notification_id}/read",
    response_model=Envelope[notification_schema.NotificationRead],
    summary="Mark one notification as read",
)
def mark_read(
    notification_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """
    Idempotent. A notification that belongs to someone else answers 403,
    a missing one 404.
    """
    db_notification = raise_for_outcome(
        notification_crud.mark_read(db, notification_id, current_user.id), "Notification"
    )
    return {"success": True, "message": "Notification marked as read", "data": db_notification}


@router.delete(
    "/{notification_id}",
    response_model=Envelope[dict],
    summary="Delete one of my notifications",
)
def delete_notification(
    notification_id: int,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    raise_for_outcome(notification_crud.delete_owned(db, notification_id, current_user.id), "Notification")
    return {"success": True, "message": "Notification deleted"}
