# campus_connect/services/message_service.py
from typing import List

from sqlalchemy.orm import Session

from campus_connect.crud import chat_crud, user_crud
from campus_connect.exceptions import AuthorizationError, NotFoundError, ValidationError
from campus_connect.models.chat_model import ChatGroup, Message
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.chat_schema import MessageCreate
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.service_helper import truncate


def get_group_for_member(db: Session, group_id: int, user_id: int) -> ChatGroup:
    db_group = chat_crud.get_group(db, group_id)
    if not db_group:
        raise NotFoundError("Chat group not found")
    if not chat_crud.is_member(db, group_id, user_id):
        raise AuthorizationError("You are not a member of this chat group")
    return db_group


def send_message(
    db: Session,
    sender: AuthenticatedUser,
    message_in: MessageCreate,
    notifier: NotificationService,
) -> Message:
    """
    Store a direct or group message and notify every recipient except the sender.
    """
    preview = truncate(message_in.content, 50)
    if message_in.receiver_id is not None:
        if message_in.receiver_id == sender.id:
            raise ValidationError("You cannot message yourself")
        if not user_crud.get_user(db, message_in.receiver_id):
            raise NotFoundError("Recipient not found")
        db_message = chat_crud.create_message(db, sender.id, message_in.content, receiver_id=message_in.receiver_id)
        notifier.create_and_send(
            user_id=message_in.receiver_id,
            type="message_new_direct",
            content=f"New message: {preview}",
            source_table="messages",
            source_id=db_message.id,
            source_details={"sender_id": sender.id},
        )
        return db_message

    db_group = get_group_for_member(db, message_in.group_id, sender.id)
    db_message = chat_crud.create_message(db, sender.id, message_in.content, group_id=db_group.id)
    recipients = [uid for uid in chat_crud.member_ids(db, db_group.id) if uid != sender.id]
    notifier.notify_many(
        recipients,
        type="message_new_group",
        content=f"New message in {db_group.name}: {preview}",
        source_table="messages",
        source_id=db_message.id,
        source_details={"sender_id": sender.id, "group_id": db_group.id},
    )
    return db_message


def create_group(db: Session, creator_id: int, name: str, description: str | None, member_ids: List[int]) -> ChatGroup:
    known = {user.id for user in user_crud.get_users_by_ids(db, member_ids)}
    missing = set(member_ids) - known
    if missing:
        raise NotFoundError(f"Users not found: {', '.join(str(uid) for uid in sorted(missing))}")
    return chat_crud.create_group(db, creator_id, name, description, member_ids)


def add_member(db: Session, group_id: int, actor_id: int, user_id: int):
    get_group_for_member(db, group_id, actor_id)
    if not user_crud.get_user(db, user_id):
        raise NotFoundError("User not found")
    if chat_crud.is_member(db, group_id, user_id):
        raise ValidationError("User is already a member of this group")
    return chat_crud.add_member(db, group_id, user_id)
