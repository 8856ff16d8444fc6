from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from campus_connect.crud.ownership import OwnedMutation, find_owned
from campus_connect.models.forum_model import Forum, ForumPost
from campus_connect.models.post_model import PostStatus


def get_forum(db: Session, forum_id: int) -> Optional[Forum]:
    return db.query(Forum).filter(Forum.id == forum_id).first()


def list_forums(db: Session, page: int = 1, limit: int = 20) -> Tuple[List[Forum], int]:
    query = db.query(Forum)
    total = query.count()
    rows = query.order_by(Forum.created_at.desc(), Forum.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def create_forum(db: Session, creator_id: int, forum_data: dict) -> Forum:
    db_forum = Forum(created_by=creator_id, **forum_data)
    db.add(db_forum)
    db.commit()
    db.refresh(db_forum)
    return db_forum


def update_owned_forum(db: Session, forum_id: int, creator_id: int, update_data: dict) -> OwnedMutation:
    result = find_owned(db, Forum, forum_id, Forum.created_by, creator_id)
    if result.applied:
        for key, value in update_data.items():
            setattr(result.row, key, value)
        db.commit()
        db.refresh(result.row)
    return result


def delete_forum(db: Session, db_forum: Forum) -> None:
    db.query(ForumPost).filter(
        ForumPost.forum_id == db_forum.id, ForumPost.parent_id.isnot(None)
    ).delete(synchronize_session=False)
    db.query(ForumPost).filter(ForumPost.forum_id == db_forum.id).delete(synchronize_session=False)
    db.delete(db_forum)
    db.commit()


def get_forum_post(db: Session, post_id: int) -> Optional[ForumPost]:
    return db.query(ForumPost).filter(ForumPost.id == post_id).first()


def list_forum_posts(
    db: Session,
    forum_id: Optional[int] = None,
    page: int = 1,
    limit: int = 50,
    status: Optional[PostStatus] = PostStatus.active,
) -> Tuple[List[ForumPost], int]:
    query = db.query(ForumPost)
    if forum_id is not None:
        query = query.filter(ForumPost.forum_id == forum_id)
    if status:
        query = query.filter(ForumPost.status == status)
    total = query.count()
    rows = query.order_by(ForumPost.created_at.asc(), ForumPost.id.asc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def create_forum_post(db: Session, author_id: int, forum_id: int, post_data: dict) -> ForumPost:
    db_post = ForumPost(author_id=author_id, forum_id=forum_id, **post_data)
    db.add(db_post)
    db.commit()
    db.refresh(db_post)
    return db_post


def update_owned_forum_post(db: Session, post_id: int, author_id: int, update_data: dict) -> OwnedMutation:
    result = find_owned(db, ForumPost, post_id, ForumPost.author_id, author_id)
    if result.applied:
        for key, value in update_data.items():
            setattr(result.row, key, value)
        db.commit()
        db.refresh(result.row)
    return result


def delete_forum_post(db: Session, db_post: ForumPost) -> None:
    db.query(ForumPost).filter(ForumPost.parent_id == db_post.id).delete(synchronize_session=False)
    db.delete(db_post)
    db.commit()


def moderate_forum_post(db: Session, db_post: ForumPost, update_data: dict) -> ForumPost:
    for key, value in update_data.items():
        setattr(db_post, key, value)
    db.commit()
    db.refresh(db_post)
    return db_post


def delete_user_forum_content(db: Session, user_id: int) -> int:
    """Drop the user's forums with every post in them, then their posts elsewhere with replies."""
    forum_ids = [row.id for row in db.query(Forum.id).filter(Forum.created_by == user_id).all()]
    post_ids = [row.id for row in db.query(ForumPost.id).filter(ForumPost.author_id == user_id).all()]
    db.query(ForumPost).filter(ForumPost.moderated_by == user_id).update(
        {ForumPost.moderated_by: None}, synchronize_session=False
    )
    removed = 0
    if post_ids:
        removed += db.query(ForumPost).filter(ForumPost.parent_id.in_(post_ids)).delete(synchronize_session=False)
    if forum_ids:
        removed += db.query(ForumPost).filter(
            ForumPost.forum_id.in_(forum_ids), ForumPost.parent_id.isnot(None)
        ).delete(synchronize_session=False)
    criteria = [ForumPost.author_id == user_id]
    if forum_ids:
        criteria.append(ForumPost.forum_id.in_(forum_ids))
    removed += db.query(ForumPost).filter(or_(*criteria)).delete(synchronize_session=False)
    if forum_ids:
        removed += db.query(Forum).filter(Forum.id.in_(forum_ids)).delete(synchronize_session=False)
    return removed
