# campus_connect/services/notification_service.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_connect.crud import notification_crud
from campus_connect.exceptions import UpstreamError
from campus_connect.models.notification_model import Notification
from campus_connect.realtime.channel import RealtimeChannel

logger = logging.getLogger(__name__)


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "content": notification.content,
        "source_table": notification.source_table,
        "source_id": notification.source_id,
        "source_details": notification.source_details,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


class NotificationService:
    """
    Persist-then-push fan-out.

    A failed insert propagates as UpstreamError. A failed or skipped push does
    not: the row stays in the store and clients pick it up from the list
    endpoints.
    """

    def __init__(self, db: Session, channel: Optional[RealtimeChannel] = None):
        self.db = db
        self.channel = channel

    def create_and_send(
        self,
        user_id: int,
        type: str,
        content: str,
        source_table: Optional[str] = None,
        source_id: Optional[int] = None,
        source_details: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        try:
            notification = notification_crud.create_notification(
                self.db,
                user_id=user_id,
                type=type,
                content=content,
                source_table=source_table,
                source_id=source_id,
                source_details=source_details,
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to persist notification '{type}' for user {user_id}: {e}")
            raise UpstreamError(f"Failed to create notification: {e}")

        self.send_existing(notification)
        return notification

    def send_existing(self, notification: Notification) -> bool:
        if self.channel is None:
            return False
        pushed = self.channel.emit_notification(notification.user_id, serialize_notification(notification))
        if not pushed:
            logger.debug(f"Notification {notification.id} persisted but not pushed (channel unbound)")
        return pushed

    def notify_many(
        self,
        user_ids: Iterable[int],
        type: str,
        content: str,
        source_table: Optional[str] = None,
        source_id: Optional[int] = None,
        source_details: Optional[Dict[str, Any]] = None,
    ) -> List[Notification]:
        return [
            self.create_and_send(user_id, type, content, source_table, source_id, source_details)
            for user_id in dict.fromkeys(user_ids)
        ]
