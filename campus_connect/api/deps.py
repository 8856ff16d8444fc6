# campus_connect/api/deps.py
from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from campus_connect.database import SessionLocal
from campus_connect.realtime.channel import RealtimeChannel, channel
from campus_connect.services.notification_service import NotificationService


def get_db() -> Generator[Session, None, None]:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_channel() -> RealtimeChannel:
    """Real-time channel dependency; tests override it with a recording double."""
    return channel


def get_notifier(
    db: Session = Depends(get_db),
    realtime: RealtimeChannel = Depends(get_channel),
) -> NotificationService:
    return NotificationService(db, realtime)
