import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from campus_connect.database import Base
from campus_connect.services.service_helper import utcnow


class AppointmentStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    completed = "completed"
    cancelled = "cancelled"
    rescheduled = "rescheduled"


# Statuses that still hold a place in a slot.
LIVE_STATUSES = (AppointmentStatus.pending, AppointmentStatus.accepted, AppointmentStatus.rescheduled)


class Appointment(Base):
    """
    Model for the appointments table.
    appointment_time is stored as naive UTC.
    """
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    appointee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    appointment_time = Column(DateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False, default=30)
    status = Column(
        Enum(AppointmentStatus, name="appointment_status_enum"),
        nullable=False,
        default=AppointmentStatus.pending,
    )
    reason = Column(Text)
    location = Column(String)
    meeting_type = Column(String, default="in_person")
    meeting_link = Column(String)
    notes = Column(Text)
    priority = Column(String, default="normal")
    appointment_type = Column(String, default="general")
    response_message = Column(Text)
    responded_at = Column(DateTime)
    reminder_sent_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    requester = relationship("User", foreign_keys=[requester_id])
    appointee = relationship("User", foreign_keys=[appointee_id])
