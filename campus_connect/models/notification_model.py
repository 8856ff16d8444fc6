from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from campus_connect.database import Base
from campus_connect.services.service_helper import utcnow


class Notification(Base):
    """
    Model for the notifications table.
    type is free-form ("appointment_new", "message_new_direct", ...).
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    source_table = Column(String)
    source_id = Column(Integer)
    source_details = Column(JSON)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, index=True)

    user = relationship("User")
