from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from campus_connect.models.post_model import PostStatus


class PostCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    category: str = "general"


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    category: Optional[str] = None


class PostModerate(BaseModel):
    status: PostStatus
    reason: Optional[str] = None


class PostRead(BaseModel):
    id: int
    author_id: int
    title: Optional[str] = None
    content: str
    category: Optional[str] = None
    status: PostStatus
    moderation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    post_id: int
    content: str = Field(..., min_length=1, max_length=2000)


class CommentRead(BaseModel):
    id: int
    post_id: int
    author_id: int
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
