from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from campus_connect.crud.ownership import OwnedMutation, find_owned
from campus_connect.models.notification_model import Notification


def get_notification(db: Session, notification_id: int) -> Optional[Notification]:
    return db.query(Notification).filter(Notification.id == notification_id).first()


def create_notification(db: Session, **fields) -> Notification:
    db_notification = Notification(**fields)
    db.add(db_notification)
    db.commit()
    db.refresh(db_notification)
    return db_notification


def list_for_user(db: Session, user_id: int, page: int = 1, limit: int = 20) -> Tuple[List[Notification], int]:
    """Newest first."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def list_unread_for_user(db: Session, user_id: int) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


def count_unread(db: Session, user_id: int) -> int:
    return (
        db.query(func.count(Notification.id))
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .scalar()
        or 0
    )


def mark_read(db: Session, notification_id: int, user_id: int) -> OwnedMutation:
    """
    Set is_read on the row matching both id and user_id.
    Repeating the call on an already-read row is still `applied`.
    """
    result = find_owned(db, Notification, notification_id, Notification.user_id, user_id)
    if result.applied and not result.row.is_read:
        result.row.is_read = True
        db.commit()
        db.refresh(result.row)
    return result


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_owned(db: Session, notification_id: int, user_id: int) -> OwnedMutation:
    result = find_owned(db, Notification, notification_id, Notification.user_id, user_id)
    if result.applied:
        db.delete(result.row)
        db.commit()
    return result
