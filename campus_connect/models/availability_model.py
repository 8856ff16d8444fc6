import enum

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import relationship

from campus_connect.database import Base
from campus_connect.services.service_helper import utcnow


class StaffAvailability(Base):
    """
    A bookable window published by a lecturer or administrator.
    Recurring slots set day_of_week (0=Sunday ... 6=Saturday); one-off slots set specific_date.
    """
    __tablename__ = "staff_availability"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = Column(Integer)
    specific_date = Column(Date)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration_minutes = Column(Integer, nullable=False, default=30)
    max_appointments_per_slot = Column(Integer, nullable=False, default=1)
    buffer_time_minutes = Column(Integer, nullable=False, default=0)
    availability_type = Column(String, nullable=False, default="regular")
    location = Column(String)
    notes = Column(String)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    staff = relationship("User")


class ExceptionType(str, enum.Enum):
    unavailable = "unavailable"
    modified_hours = "modified_hours"
    extra_hours = "extra_hours"


class StaffAvailabilityException(Base):
    """
    A one-day override of a staff member's availability.
    'unavailable' blocks the whole date; 'modified_hours' narrows bookings on
    that date to start_time..end_time; 'extra_hours' opens that window as well.
    """
    __tablename__ = "availability_exceptions"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    exception_date = Column(Date, nullable=False, index=True)
    exception_type = Column(
        Enum(ExceptionType, name="availability_exception_type_enum"),
        nullable=False,
        default=ExceptionType.unavailable,
    )
    start_time = Column(Time)
    end_time = Column(Time)
    reason = Column(Text)
    is_recurring = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    staff = relationship("User")

    def covers(self, start_time, end_time) -> bool:
        if self.start_time is None or self.end_time is None:
            return False
        return self.start_time <= start_time and end_time <= self.end_time
