from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from campus_connect.models.post_model import PostStatus


class ForumCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=200, example="Final year projects")
    description: Optional[str] = Field(None, max_length=2000)


class ForumUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator("title")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class ForumRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    created_by: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ForumPostCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    parent_id: Optional[int] = Field(None, description="Post being replied to")


class ForumPostUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class ForumPostRead(BaseModel):
    id: int
    forum_id: int
    author_id: int
    parent_id: Optional[int] = None
    content: str
    status: PostStatus
    moderation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
