# campus_connect/services/forum_service.py
import logging

from sqlalchemy.orm import Session

from campus_connect.api.auth.permissions import Capability, can
from campus_connect.crud import forum_crud
from campus_connect.crud.ownership import raise_for_outcome
from campus_connect.exceptions import AuthorizationError, NotFoundError, ValidationError
from campus_connect.models.forum_model import Forum, ForumPost
from campus_connect.models.post_model import PostStatus
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.service_helper import truncate, utcnow

logger = logging.getLogger(__name__)


def get_forum_or_404(db: Session, forum_id: int) -> Forum:
    db_forum = forum_crud.get_forum(db, forum_id)
    if not db_forum:
        raise NotFoundError("Forum not found")
    return db_forum


def get_forum_post_or_404(db: Session, post_id: int) -> ForumPost:
    db_post = forum_crud.get_forum_post(db, post_id)
    if not db_post:
        raise NotFoundError("Forum post not found")
    return db_post


def update_forum(db: Session, forum_id: int, creator_id: int, update_data: dict) -> Forum:
    return raise_for_outcome(forum_crud.update_owned_forum(db, forum_id, creator_id, update_data), "Forum")


def delete_forum(db: Session, forum_id: int, current_user: AuthenticatedUser) -> None:
    db_forum = get_forum_or_404(db, forum_id)
    if db_forum.created_by != current_user.id and not can(current_user.role, Capability.MODERATE_POSTS):
        raise AuthorizationError("You do not own this forum")
    forum_crud.delete_forum(db, db_forum)
    logger.info(f"Forum {forum_id} deleted by user {current_user.id}")


def add_post(
    db: Session,
    forum_id: int,
    author_id: int,
    content: str,
    parent_id: int | None,
    notifier: NotificationService,
) -> ForumPost:
    """Post into a forum, or reply to a top-level post when parent_id is given."""
    get_forum_or_404(db, forum_id)
    parent = None
    if parent_id is not None:
        parent = forum_crud.get_forum_post(db, parent_id)
        if parent is None or parent.forum_id != forum_id:
            raise NotFoundError("Parent post not found in this forum")
        if parent.parent_id is not None:
            raise ValidationError("Replies can only be made to top-level posts")
        if parent.status == PostStatus.blocked:
            raise ValidationError("Replies are closed on blocked posts")

    db_post = forum_crud.create_forum_post(db, author_id, forum_id, {"content": content, "parent_id": parent_id})
    if parent is not None and parent.author_id != author_id:
        notifier.create_and_send(
            user_id=parent.author_id,
            type="forum_reply",
            content=f'New reply to your forum post "{truncate(parent.content)}"',
            source_table="forum_posts",
            source_id=db_post.id,
            source_details={"forum_id": forum_id, "parent_id": parent.id},
        )
    return db_post


def update_post(db: Session, post_id: int, author_id: int, update_data: dict) -> ForumPost:
    return raise_for_outcome(
        forum_crud.update_owned_forum_post(db, post_id, author_id, update_data), "Forum post"
    )


def delete_post(db: Session, post_id: int, current_user: AuthenticatedUser) -> None:
    db_post = get_forum_post_or_404(db, post_id)
    if db_post.author_id != current_user.id and not can(current_user.role, Capability.MODERATE_POSTS):
        raise AuthorizationError("You do not own this forum post")
    forum_crud.delete_forum_post(db, db_post)


def moderate_post(
    db: Session,
    post_id: int,
    status: PostStatus,
    reason: str | None,
    moderator_id: int,
    notifier: NotificationService,
) -> ForumPost:
    db_post = get_forum_post_or_404(db, post_id)
    db_post = forum_crud.moderate_forum_post(db, db_post, {
        "status": status,
        "moderation_reason": reason,
        "moderated_by": moderator_id,
        "moderated_at": utcnow(),
    })
    if status != PostStatus.active:
        content = f'Your forum post "{truncate(db_post.content)}" was {status.value} by a moderator.'
        if reason:
            content = f"{content} Reason: {reason}"
        notifier.create_and_send(
            user_id=db_post.author_id,
            type="forum_post_moderated",
            content=content,
            source_table="forum_posts",
            source_id=db_post.id,
            source_details={"forum_id": db_post.forum_id, "status": status.value, "reason": reason},
        )
    return db_post
