from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import get_current_active_user
from campus_connect.crud import chat_crud, user_crud
from campus_connect.exceptions import NotFoundError
from campus_connect.schemas import chat_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.services import message_service
from campus_connect.services.notification_service import NotificationService

router = APIRouter()


@router.post(
    "/chat-groups",
    response_model=Envelope[chat_schema.ChatGroupRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a chat group",
)
def create_group(
    group_in: chat_schema.ChatGroupCreate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_group = message_service.create_group(
        db, current_user.id, group_in.name, group_in.description, group_in.member_ids
    )
    return {"success": True, "message": "Chat group created", "data": db_group}


@router.get("/chat-groups", response_model=Envelope[List[chat_schema.ChatGroupRead]], summary="My chat groups")
def list_my_groups(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": chat_crud.list_groups_for_user(db, current_user.id)}


@router.post(
    "/chat-groups/{group_id}/members",
    response_model=Envelope[dict],
    status_code=status.HTTP_201_CREATED,
    summary="Add a member to a group I belong to",
)
def add_group_member(
    group_id: int,
    member_in: chat_schema.ChatGroupMemberAdd,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    message_service.add_member(db, group_id, current_user.id, member_in.user_id)
    return {"success": True, "message": "Member added", "data": {"group_id": group_id, "user_id": member_in.user_id}}


@router.get(
    "/chat-groups/{group_id}/messages",
    response_model=Envelope[List[chat_schema.MessageRead]],
    summary="Messages of a group",
)
def list_group_messages(
    group_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    message_service.get_group_for_member(db, group_id, current_user.id)
    return {"success": True, "data": chat_crud.list_group_messages(db, group_id, skip=skip, limit=limit)}


@router.post(
    "/messages",
    response_model=Envelope[chat_schema.MessageRead],
    status_code=status.HTTP_201_CREATED,
    summary="Send a direct or group message",
)
def send_message(
    message_in: chat_schema.MessageCreate,
    db: Session = Depends(deps.get_db),
    notifier: NotificationService = Depends(deps.get_notifier),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_message = message_service.send_message(db, current_user, message_in, notifier)
    return {"success": True, "message": "Message sent", "data": db_message}


@router.get(
    "/messages/{user_id}",
    response_model=Envelope[List[chat_schema.MessageRead]],
    summary="Direct conversation with a user",
)
def get_conversation(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    if not user_crud.get_user(db, user_id):
        raise NotFoundError("User not found")
    return {"success": True, "data": chat_crud.list_conversation(db, current_user.id, user_id, skip=skip, limit=limit)}
