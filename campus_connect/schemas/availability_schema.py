from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from campus_connect.models.availability_model import ExceptionType
from campus_connect.services.service_helper import to_naive_time


class AvailabilityBase(BaseModel):
    day_of_week: Optional[int] = Field(None, ge=0, le=6, example=1, description="0=Sunday ... 6=Saturday")
    specific_date: Optional[date] = Field(None, example=None)
    start_time: time = Field(..., example="09:00:00")
    end_time: time = Field(..., example="12:00:00")
    slot_duration_minutes: int = Field(30, ge=5, le=480)
    max_appointments_per_slot: int = Field(1, ge=1, le=100)
    buffer_time_minutes: int = Field(0, ge=0, le=240)
    availability_type: str = Field("regular", example="regular")
    location: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def strip_timezone(cls, value):
        return to_naive_time(value) if isinstance(value, (str, time)) else value

    @model_validator(mode="after")
    def check_window(self):
        if self.day_of_week is None and self.specific_date is None:
            raise ValueError("Either day_of_week or specific_date is required")
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityCreate(AvailabilityBase):
    pass


class AdminAvailabilityCreate(AvailabilityBase):
    staff_id: int


class AvailabilityBulkCreate(BaseModel):
    slots: List[AvailabilityCreate] = Field(..., min_length=1, max_length=100)


class AvailabilityUpdate(BaseModel):
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    specific_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    slot_duration_minutes: Optional[int] = Field(None, ge=5, le=480)
    max_appointments_per_slot: Optional[int] = Field(None, ge=1, le=100)
    buffer_time_minutes: Optional[int] = Field(None, ge=0, le=240)
    availability_type: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def strip_timezone(cls, value):
        return to_naive_time(value) if isinstance(value, (str, time)) else value

    # Omit a field to keep it; only the nullable columns accept an explicit null.
    @field_validator(
        "start_time",
        "end_time",
        "slot_duration_minutes",
        "max_appointments_per_slot",
        "buffer_time_minutes",
        "availability_type",
        "is_active",
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class AvailabilityRead(BaseModel):
    id: int
    staff_id: int
    day_of_week: Optional[int] = None
    specific_date: Optional[date] = None
    start_time: time
    end_time: time
    slot_duration_minutes: int
    max_appointments_per_slot: int
    buffer_time_minutes: int
    availability_type: str
    location: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AvailabilitySummary(BaseModel):
    staff_id: int
    total_slots: int
    active_slots: int
    days_covered: List[int]
    specific_dates: List[date]
    availability_types: List[str]


# ---------------------------------------------------------
# EXCEPTIONS
# ---------------------------------------------------------

def check_exception_hours(exception_type: ExceptionType, start: Optional[time], end: Optional[time]) -> None:
    if exception_type == ExceptionType.unavailable:
        if start is not None or end is not None:
            raise ValueError("Unavailable exceptions cannot have start_time or end_time")
        return
    if start is None or end is None:
        raise ValueError("start_time and end_time are required for modified_hours and extra_hours exceptions")
    if end <= start:
        raise ValueError("end_time must be after start_time")


class AvailabilityExceptionCreate(BaseModel):
    exception_date: date = Field(..., example="2026-12-24")
    exception_type: ExceptionType = ExceptionType.unavailable
    start_time: Optional[time] = Field(None, example=None)
    end_time: Optional[time] = Field(None, example=None)
    reason: Optional[str] = Field(None, max_length=500, example="Conference travel")
    is_recurring: bool = False

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def strip_timezone(cls, value):
        return to_naive_time(value) if isinstance(value, (str, time)) else value

    @model_validator(mode="after")
    def check_hours(self):
        check_exception_hours(self.exception_type, self.start_time, self.end_time)
        return self


class AvailabilityExceptionUpdate(BaseModel):
    exception_date: Optional[date] = None
    exception_type: Optional[ExceptionType] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = Field(None, max_length=500)
    is_recurring: Optional[bool] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def strip_timezone(cls, value):
        return to_naive_time(value) if isinstance(value, (str, time)) else value

    @field_validator("exception_date", "exception_type", "is_recurring")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class AvailabilityExceptionRead(BaseModel):
    id: int
    staff_id: int
    exception_date: date
    exception_type: ExceptionType
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None
    is_recurring: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
