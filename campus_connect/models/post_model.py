import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from campus_connect.database import Base
from campus_connect.services.service_helper import utcnow


class PostStatus(str, enum.Enum):
    active = "active"
    flagged = "flagged"
    blocked = "blocked"


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String)
    content = Column(Text, nullable=False)
    category = Column(String, default="general")
    status = Column(Enum(PostStatus, name="post_status_enum"), nullable=False, default=PostStatus.active)
    moderation_reason = Column(Text)
    moderated_by = Column(Integer, ForeignKey("users.id"))
    moderated_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    author = relationship("User", foreign_keys=[author_id])
    comments = relationship("Comment", back_populates="post")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    post = relationship("Post", back_populates="comments")
    author = relationship("User")
