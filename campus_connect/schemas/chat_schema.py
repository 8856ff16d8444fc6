from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class ChatGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    member_ids: List[int] = Field(default_factory=list)


class ChatGroupRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_by: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChatGroupMemberAdd(BaseModel):
    user_id: int


class MessageCreate(BaseModel):
    """Exactly one of receiver_id / group_id."""
    content: str = Field(..., min_length=1, max_length=5000)
    receiver_id: Optional[int] = None
    group_id: Optional[int] = None

    @model_validator(mode="after")
    def check_target(self):
        if (self.receiver_id is None) == (self.group_id is None):
            raise ValueError("Provide exactly one of receiver_id or group_id")
        return self


class MessageRead(BaseModel):
    id: int
    sender_id: int
    receiver_id: Optional[int] = None
    group_id: Optional[int] = None
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
