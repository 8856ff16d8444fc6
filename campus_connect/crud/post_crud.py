from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from campus_connect.crud.ownership import OwnedMutation, find_owned
from campus_connect.models.post_model import Comment, Post, PostStatus


def get_post(db: Session, post_id: int) -> Optional[Post]:
    return db.query(Post).filter(Post.id == post_id).first()


def list_posts(
    db: Session,
    page: int = 1,
    limit: int = 20,
    category: Optional[str] = None,
    status: Optional[PostStatus] = PostStatus.active,
) -> Tuple[List[Post], int]:
    query = db.query(Post)
    if status:
        query = query.filter(Post.status == status)
    if category:
        query = query.filter(Post.category == category)
    total = query.count()
    rows = query.order_by(Post.created_at.desc(), Post.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def create_post(db: Session, author_id: int, post_data: dict) -> Post:
    db_post = Post(author_id=author_id, **post_data)
    db.add(db_post)
    db.commit()
    db.refresh(db_post)
    return db_post


def update_owned_post(db: Session, post_id: int, author_id: int, update_data: dict) -> OwnedMutation:
    result = find_owned(db, Post, post_id, Post.author_id, author_id)
    if result.applied:
        for key, value in update_data.items():
            setattr(result.row, key, value)
        db.commit()
        db.refresh(result.row)
    return result


def delete_post(db: Session, db_post: Post) -> None:
    db.query(Comment).filter(Comment.post_id == db_post.id).delete(synchronize_session=False)
    db.delete(db_post)
    db.commit()


def moderate_post(db: Session, db_post: Post, update_data: dict) -> Post:
    for key, value in update_data.items():
        setattr(db_post, key, value)
    db.commit()
    db.refresh(db_post)
    return db_post


def list_comments(db: Session, post_id: int) -> List[Comment]:
    return db.query(Comment).filter(Comment.post_id == post_id).order_by(Comment.created_at.asc(), Comment.id.asc()).all()


def create_comment(db: Session, author_id: int, post_id: int, content: str) -> Comment:
    db_comment = Comment(author_id=author_id, post_id=post_id, content=content)
    db.add(db_comment)
    db.commit()
    db.refresh(db_comment)
    return db_comment


def delete_owned_comment(db: Session, comment_id: int, author_id: int) -> OwnedMutation:
    result = find_owned(db, Comment, comment_id, Comment.author_id, author_id)
    if result.applied:
        db.delete(result.row)
        db.commit()
    return result
