# campus_connect/services/post_service.py
from sqlalchemy.orm import Session

from campus_connect.api.auth.permissions import Capability, can
from campus_connect.crud import post_crud
from campus_connect.crud.ownership import raise_for_outcome
from campus_connect.exceptions import AuthorizationError, NotFoundError, ValidationError
from campus_connect.models.post_model import Post, PostStatus
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.services.notification_service import NotificationService
from campus_connect.services.service_helper import truncate, utcnow


def get_post_or_404(db: Session, post_id: int) -> Post:
    db_post = post_crud.get_post(db, post_id)
    if not db_post:
        raise NotFoundError("Post not found")
    return db_post


def update_post(db: Session, post_id: int, author_id: int, update_data: dict) -> Post:
    return raise_for_outcome(post_crud.update_owned_post(db, post_id, author_id, update_data), "Post")


def delete_post(db: Session, post_id: int, current_user: AuthenticatedUser) -> None:
    db_post = get_post_or_404(db, post_id)
    if db_post.author_id != current_user.id and not can(current_user.role, Capability.MODERATE_POSTS):
        raise AuthorizationError("You do not own this post")
    post_crud.delete_post(db, db_post)


def add_comment(db: Session, author_id: int, post_id: int, content: str):
    db_post = get_post_or_404(db, post_id)
    if db_post.status == PostStatus.blocked:
        raise ValidationError("Comments are closed on blocked posts")
    return post_crud.create_comment(db, author_id, post_id, content)


def moderate_post(
    db: Session,
    post_id: int,
    status: PostStatus,
    reason: str | None,
    moderator_id: int,
    notifier: NotificationService,
) -> Post:
    """Set the moderation status and tell the author when it is not 'active'."""
    db_post = get_post_or_404(db, post_id)
    db_post = post_crud.moderate_post(db, db_post, {
        "status": status,
        "moderation_reason": reason,
        "moderated_by": moderator_id,
        "moderated_at": utcnow(),
    })
    if status != PostStatus.active:
        label = db_post.title or truncate(db_post.content)
        content = f'Your post "{label}" was {status.value} by a moderator.'
        if reason:
            content = f"{content} Reason: {reason}"
        notifier.create_and_send(
            user_id=db_post.author_id,
            type="post_moderated",
            content=content,
            source_table="posts",
            source_id=db_post.id,
            source_details={"status": status.value, "reason": reason},
        )
    return db_post
