from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from campus_connect.models.chat_model import ChatGroup, ChatGroupMember, Message


def get_group(db: Session, group_id: int) -> Optional[ChatGroup]:
    return db.query(ChatGroup).filter(ChatGroup.id == group_id).first()


def create_group(db: Session, created_by: int, name: str, description: Optional[str], member_ids: List[int]) -> ChatGroup:
    """Create a group with its creator as admin plus the given members."""
    db_group = ChatGroup(name=name, description=description, created_by=created_by)
    db.add(db_group)
    db.flush()
    db.add(ChatGroupMember(group_id=db_group.id, user_id=created_by, role="admin"))
    for member_id in set(member_ids) - {created_by}:
        db.add(ChatGroupMember(group_id=db_group.id, user_id=member_id))
    db.commit()
    db.refresh(db_group)
    return db_group


def list_groups_for_user(db: Session, user_id: int) -> List[ChatGroup]:
    return (
        db.query(ChatGroup)
        .join(ChatGroupMember, ChatGroupMember.group_id == ChatGroup.id)
        .filter(ChatGroupMember.user_id == user_id)
        .order_by(ChatGroup.created_at.desc())
        .all()
    )


def is_member(db: Session, group_id: int, user_id: int) -> bool:
    return db.query(ChatGroupMember.id).filter(
        ChatGroupMember.group_id == group_id,
        ChatGroupMember.user_id == user_id,
    ).first() is not None


def add_member(db: Session, group_id: int, user_id: int) -> ChatGroupMember:
    db_member = ChatGroupMember(group_id=group_id, user_id=user_id)
    db.add(db_member)
    db.commit()
    db.refresh(db_member)
    return db_member


def member_ids(db: Session, group_id: int) -> List[int]:
    return [row.user_id for row in db.query(ChatGroupMember.user_id).filter(ChatGroupMember.group_id == group_id).all()]


def create_message(db: Session, sender_id: int, content: str, receiver_id: Optional[int] = None, group_id: Optional[int] = None) -> Message:
    db_message = Message(sender_id=sender_id, receiver_id=receiver_id, group_id=group_id, content=content)
    db.add(db_message)
    db.commit()
    db.refresh(db_message)
    return db_message


def list_conversation(db: Session, user_id: int, other_id: int, skip: int = 0, limit: int = 50) -> List[Message]:
    return (
        db.query(Message)
        .filter(or_(
            and_(Message.sender_id == user_id, Message.receiver_id == other_id),
            and_(Message.sender_id == other_id, Message.receiver_id == user_id),
        ))
        .order_by(Message.created_at.asc(), Message.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_group_messages(db: Session, group_id: int, skip: int = 0, limit: int = 50) -> List[Message]:
    return (
        db.query(Message)
        .filter(Message.group_id == group_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )
