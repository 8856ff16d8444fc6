from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from campus_connect.database import Base
from campus_connect.models.post_model import PostStatus
from campus_connect.services.service_helper import utcnow


class Forum(Base):
    __tablename__ = "forums"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    creator = relationship("User")
    posts = relationship("ForumPost", back_populates="forum")


class ForumPost(Base):
    """
    A post in a forum thread. Replies point at a top-level post through
    parent_id, so threads are one level deep.
    """
    __tablename__ = "forum_posts"

    id = Column(Integer, primary_key=True, index=True)
    forum_id = Column(Integer, ForeignKey("forums.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("forum_posts.id"), index=True)
    content = Column(Text, nullable=False)
    status = Column(Enum(PostStatus, name="forum_post_status_enum"), nullable=False, default=PostStatus.active)
    moderation_reason = Column(Text)
    moderated_by = Column(Integer, ForeignKey("users.id"))
    moderated_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    forum = relationship("Forum", back_populates="posts")
    author = relationship("User", foreign_keys=[author_id])
