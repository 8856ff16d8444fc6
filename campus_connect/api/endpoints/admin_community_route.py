from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import require_capability
from campus_connect.api.auth.permissions import Capability
from campus_connect.crud import forum_crud, post_crud
from campus_connect.exceptions import NotFoundError
from campus_connect.models.post_model import PostStatus
from campus_connect.realtime.channel import RealtimeChannel
from campus_connect.schemas import forum_schema, post_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.services import forum_service, post_service
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.service_helper import build_pagination

router = APIRouter()

MODERATORS = require_capability(Capability.MODERATE_POSTS)
REALTIME_ADMIN = require_capability(Capability.VIEW_REALTIME_CONNECTIONS)


@router.get(
    "/posts",
    response_model=Envelope[List[post_schema.PostRead]],
    summary="Posts by moderation status",
    dependencies=[Depends(MODERATORS)],
)
def list_posts_for_moderation(
    status_filter: Optional[PostStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
):
    rows, total = post_crud.list_posts(db, page=page, limit=limit, status=status_filter)
    return {"success": True, "data": rows, "pagination": build_pagination(page, limit, total)}


@router.put(
    "/posts/{post_id}/moderate",
    response_model=Envelope[post_schema.PostRead],
    summary="Flag, block or restore a post",
)
def moderate_post(
    post_id: int,
    moderate_in: post_schema.PostModerate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(MODERATORS),
):
    db_post = post_service.moderate_post(
        db, post_id, moderate_in.status, moderate_in.reason, current_user.id, notifier
    )
    return {"success": True, "message": f"Post {moderate_in.status.value}", "data": db_post}


@router.get(
    "/forum-posts",
    response_model=Envelope[List[forum_schema.ForumPostRead]],
    summary="Forum posts by moderation status",
    dependencies=[Depends(MODERATORS)],
)
def list_forum_posts_for_moderation(
    status_filter: Optional[PostStatus] = Query(None, alias="status"),
    forum_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(deps.get_db),
):
    rows, total = forum_crud.list_forum_posts(db, forum_id=forum_id, page=page, limit=limit, status=status_filter)
    return {"success": True, "data": rows, "pagination": build_pagination(page, limit, total)}


@router.put(
    "/forum-posts/{post_id}/moderate",
    response_model=Envelope[forum_schema.ForumPostRead],
    summary="Flag, block or restore a forum post",
)
def moderate_forum_post(
    post_id: int,
    moderate_in: post_schema.PostModerate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(MODERATORS),
):
    db_post = forum_service.moderate_post(
        db, post_id, moderate_in.status, moderate_in.reason, current_user.id, notifier
    )
    return {"success": True, "message": f"Forum post {moderate_in.status.value}", "data": db_post}


@router.get(
    "/realtime/connections",
    response_model=Envelope[dict],
    summary="Users currently connected over Socket.IO",
    dependencies=[Depends(REALTIME_ADMIN)],
)
def list_connections(realtime: RealtimeChannel = Depends(deps.get_channel)):
    users = [user.to_dict() for user in realtime.registry.list()]
    return {"success": True, "data": {"count": realtime.registry.count(), "users": users}}


@router.delete(
    "/realtime/connections/{user_id}",
    response_model=Envelope[dict],
    summary="Force-disconnect a user's sockets",
    dependencies=[Depends(REALTIME_ADMIN)],
)
def disconnect_user(user_id: int, realtime: RealtimeChannel = Depends(deps.get_channel)):
    if realtime.registry.get(user_id) is None:
        raise NotFoundError("User is not connected")
    sockets = realtime.disconnect_user(user_id)
    return {"success": True, "message": "User disconnected", "data": {"user_id": user_id, "sockets": sockets}}
