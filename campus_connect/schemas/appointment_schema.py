from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from campus_connect.models.appointment_model import AppointmentStatus
from campus_connect.schemas.user_schema import UserSummary


class AppointmentBase(BaseModel):
    appointment_time: datetime = Field(..., example="2026-11-03T09:00:00Z")
    duration_minutes: int = Field(30, ge=5, le=480, example=30)
    reason: Optional[str] = Field(None, max_length=1000, example="Thesis proposal review")
    location: Optional[str] = Field(None, example="Room B-204")
    meeting_type: str = Field("in_person", example="in_person")
    meeting_link: Optional[str] = None
    notes: Optional[str] = None
    priority: str = Field("normal", example="normal")
    appointment_type: str = Field("general", example="academic")


class AppointmentCreate(AppointmentBase):
    """Body for a booking; the requester is always the caller."""
    appointee_id: int = Field(..., example=7)


class AdminAppointmentCreate(AppointmentCreate):
    requester_id: int = Field(..., example=3)


class AppointmentUpdate(BaseModel):
    appointment_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=5, le=480)
    reason: Optional[str] = None
    location: Optional[str] = None
    meeting_type: Optional[str] = None
    meeting_link: Optional[str] = None
    notes: Optional[str] = None
    priority: Optional[str] = None
    appointment_type: Optional[str] = None

    @field_validator("appointment_time", "duration_minutes", "meeting_type", "priority", "appointment_type")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class AppointmentStatusUpdate(BaseModel):
    # Plain string so unknown values reach the status validator with its message.
    status: str = Field(..., example="accepted")
    response_message: Optional[str] = None
    reason: Optional[str] = None
    new_appointment_time: Optional[datetime] = None


class AppointmentCancel(BaseModel):
    reason: Optional[str] = None


class AppointmentRead(AppointmentBase):
    id: int
    requester_id: int
    appointee_id: int
    status: AppointmentStatus
    response_message: Optional[str] = None
    responded_at: Optional[datetime] = None
    reminder_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    requester: Optional[UserSummary] = None
    appointee: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class AppointmentStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    upcoming: int
