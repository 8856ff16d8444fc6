from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class NotificationRead(BaseModel):
    id: int = Field(..., example=1)
    user_id: int = Field(..., example=2)
    type: str = Field(..., example="appointment_accepted")
    content: str = Field(..., example="Your appointment has been accepted.")
    source_table: Optional[str] = Field(None, example="appointments")
    source_id: Optional[int] = Field(None, example=10)
    source_details: Optional[Dict[str, Any]] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UnreadCount(BaseModel):
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int
