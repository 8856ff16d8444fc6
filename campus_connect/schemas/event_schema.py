from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from campus_connect.models.event_model import RsvpStatus


class EventCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=200, example="Career Fair 2026")
    description: Optional[str] = None
    location: Optional[str] = Field(None, example="Main Hall")
    start_time: datetime
    end_time: Optional[datetime] = None
    capacity: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_times(self):
        if self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    capacity: Optional[int] = Field(None, ge=1)


class EventRead(BaseModel):
    id: int
    organizer_id: int
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    capacity: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RsvpRequest(BaseModel):
    status: RsvpStatus = RsvpStatus.going


class RsvpRead(BaseModel):
    id: int
    event_id: int
    user_id: int
    status: RsvpStatus

    class Config:
        from_attributes = True
