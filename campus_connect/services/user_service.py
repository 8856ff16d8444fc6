# campus_connect/services/user_service.py
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_connect.api.auth.auth import revoke_all_refresh_tokens
from campus_connect.crud import forum_crud, user_crud
from campus_connect.exceptions import ConflictError, NotFoundError, ValidationError
from campus_connect.models.appointment_model import Appointment
from campus_connect.models.availability_model import StaffAvailability, StaffAvailabilityException
from campus_connect.models.chat_model import ChatGroup, ChatGroupMember, Message
from campus_connect.models.event_model import Event, EventAttendee
from campus_connect.models.notification_model import Notification
from campus_connect.models.post_model import Comment, Post
from campus_connect.models.survey_model import Survey, SurveyResponse
from campus_connect.models.token_model import RefreshToken
from campus_connect.models.user_model import User, UserRole, UserStatus
from campus_connect.realtime.channel import RealtimeChannel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# LOOKUP & VALIDATION
# ---------------------------------------------------------

def get_user_or_404(db: Session, user_id: int) -> User:
    db_user = user_crud.get_user(db, user_id)
    if not db_user:
        raise NotFoundError("User not found")
    return db_user


def check_identifiers(role: UserRole, student_id: Optional[str], staff_id: Optional[str]) -> None:
    """student_id belongs to students only; staff_id to everyone else."""
    if role == UserRole.student and staff_id:
        raise ValidationError("staff_id is not allowed for students")
    if role != UserRole.student and student_id:
        raise ValidationError("student_id is only allowed for students")


def _check_unique(db: Session, fields: dict, user_id: Optional[int] = None) -> None:
    checks = (
        ("email", user_crud.get_user_by_email, "Email already registered"),
        ("student_id", user_crud.get_user_by_student_id, "Student ID already in use"),
        ("staff_id", user_crud.get_user_by_staff_id, "Staff ID already in use"),
    )
    for key, lookup, message in checks:
        value = fields.get(key)
        if not value:
            continue
        existing = lookup(db, value)
        if existing and existing.id != user_id:
            raise ConflictError(message)


# ---------------------------------------------------------
# CRUD
# ---------------------------------------------------------

def create_user(db: Session, fields: dict) -> User:
    check_identifiers(fields["role"], fields.get("student_id"), fields.get("staff_id"))
    _check_unique(db, fields)
    return user_crud.create_user(db, **fields)


def update_user(db: Session, user_id: int, update_data: dict) -> User:
    db_user = get_user_or_404(db, user_id)
    role = update_data.get("role", db_user.role)
    student_id = update_data.get("student_id", db_user.student_id)
    staff_id = update_data.get("staff_id", db_user.staff_id)
    check_identifiers(role, student_id, staff_id)
    _check_unique(db, update_data, user_id=user_id)
    return user_crud.update_user(db, db_user, update_data)


def set_status(
    db: Session,
    user_id: int,
    status: UserStatus,
    actor_id: int,
    channel: Optional[RealtimeChannel] = None,
) -> User:
    if user_id == actor_id and status == UserStatus.blocked:
        raise ValidationError("You cannot block your own account")
    db_user = get_user_or_404(db, user_id)
    db_user = user_crud.update_user(db, db_user, {"status": status})
    if status == UserStatus.blocked:
        revoke_all_refresh_tokens(user_id, db)
        if channel is not None:
            channel.disconnect_user(user_id)
    logger.info(f"User {user_id} set to {status.value} by user {actor_id}")
    return db_user


def list_users(db: Session, **filters):
    return user_crud.list_users(db, **filters)


def get_stats(db: Session) -> dict:
    by_role = user_crud.group_counts(db, User.role)
    return {
        "total": sum(by_role.values()),
        "by_role": by_role,
        "by_department": user_crud.group_counts(db, User.department),
        "by_status": user_crud.group_counts(db, User.status),
    }


# ---------------------------------------------------------
# CASCADING CLEANUP
# ---------------------------------------------------------

@dataclass
class CleanupStep:
    name: str
    handler: Callable[[Session, int], int]


@dataclass
class CleanupReport:
    user_id: int
    user_deleted: bool = False
    removed: Dict[str, int] = field(default_factory=dict)
    failures: List[dict] = field(default_factory=list)


def _delete_where(model, *criteria) -> Callable[[Session, int], int]:
    def handler(db: Session, user_id: int) -> int:
        return db.query(model).filter(*[c(user_id) for c in criteria]).delete(synchronize_session=False)
    return handler


def _delete_messages(db: Session, user_id: int) -> int:
    return db.query(Message).filter(
        or_(Message.sender_id == user_id, Message.receiver_id == user_id)
    ).delete(synchronize_session=False)


def _delete_owned_groups(db: Session, user_id: int) -> int:
    group_ids = [row.id for row in db.query(ChatGroup.id).filter(ChatGroup.created_by == user_id).all()]
    if not group_ids:
        return 0
    db.query(Message).filter(Message.group_id.in_(group_ids)).delete(synchronize_session=False)
    db.query(ChatGroupMember).filter(ChatGroupMember.group_id.in_(group_ids)).delete(synchronize_session=False)
    return db.query(ChatGroup).filter(ChatGroup.id.in_(group_ids)).delete(synchronize_session=False)


def _delete_posts(db: Session, user_id: int) -> int:
    post_ids = [row.id for row in db.query(Post.id).filter(Post.author_id == user_id).all()]
    if post_ids:
        db.query(Comment).filter(Comment.post_id.in_(post_ids)).delete(synchronize_session=False)
    db.query(Post).filter(Post.moderated_by == user_id).update({Post.moderated_by: None}, synchronize_session=False)
    if not post_ids:
        return 0
    return db.query(Post).filter(Post.id.in_(post_ids)).delete(synchronize_session=False)


def _delete_events(db: Session, user_id: int) -> int:
    event_ids = [row.id for row in db.query(Event.id).filter(Event.organizer_id == user_id).all()]
    if not event_ids:
        return 0
    db.query(EventAttendee).filter(EventAttendee.event_id.in_(event_ids)).delete(synchronize_session=False)
    return db.query(Event).filter(Event.id.in_(event_ids)).delete(synchronize_session=False)


def _delete_surveys(db: Session, user_id: int) -> int:
    survey_ids = [row.id for row in db.query(Survey.id).filter(Survey.created_by == user_id).all()]
    if not survey_ids:
        return 0
    db.query(SurveyResponse).filter(SurveyResponse.survey_id.in_(survey_ids)).delete(synchronize_session=False)
    return db.query(Survey).filter(Survey.id.in_(survey_ids)).delete(synchronize_session=False)


def _delete_appointments(db: Session, user_id: int) -> int:
    return db.query(Appointment).filter(
        or_(Appointment.requester_id == user_id, Appointment.appointee_id == user_id)
    ).delete(synchronize_session=False)


# Dependents first, the user row last. Each step commits on its own.
CLEANUP_STEPS: List[CleanupStep] = [
    CleanupStep("notifications", _delete_where(Notification, lambda uid: Notification.user_id == uid)),
    CleanupStep("messages", _delete_messages),
    CleanupStep("chat_memberships", _delete_where(ChatGroupMember, lambda uid: ChatGroupMember.user_id == uid)),
    CleanupStep("chat_groups", _delete_owned_groups),
    CleanupStep("comments", _delete_where(Comment, lambda uid: Comment.author_id == uid)),
    CleanupStep("posts", _delete_posts),
    CleanupStep("forum_content", forum_crud.delete_user_forum_content),
    CleanupStep("event_attendance", _delete_where(EventAttendee, lambda uid: EventAttendee.user_id == uid)),
    CleanupStep("events", _delete_events),
    CleanupStep("survey_responses", _delete_where(SurveyResponse, lambda uid: SurveyResponse.user_id == uid)),
    CleanupStep("surveys", _delete_surveys),
    CleanupStep("availability", _delete_where(StaffAvailability, lambda uid: StaffAvailability.staff_id == uid)),
    CleanupStep(
        "availability_exceptions",
        _delete_where(StaffAvailabilityException, lambda uid: StaffAvailabilityException.staff_id == uid),
    ),
    CleanupStep("appointments", _delete_appointments),
    CleanupStep("refresh_tokens", _delete_where(RefreshToken, lambda uid: RefreshToken.user_id == uid)),
]


def delete_user(
    db: Session,
    user_id: int,
    actor_id: int,
    steps: Optional[List[CleanupStep]] = None,
    channel: Optional[RealtimeChannel] = None,
) -> CleanupReport:
    """
    Remove a user and everything that references them.

    Steps are best-effort: a failing step is rolled back, logged and recorded
    in the report, and the remaining steps still run. The user row delete is
    attempted regardless.
    """
    if user_id == actor_id:
        raise ValidationError("You cannot delete your own account")
    get_user_or_404(db, user_id)

    report = CleanupReport(user_id=user_id)
    for step in steps if steps is not None else CLEANUP_STEPS:
        try:
            report.removed[step.name] = step.handler(db, user_id) or 0
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Cleanup step '{step.name}' failed for user {user_id}: {e}")
            report.failures.append({"step": step.name, "error": str(e)})

    try:
        report.user_deleted = db.query(User).filter(User.id == user_id).delete(synchronize_session=False) > 0
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deleting user row {user_id} failed: {e}")
        report.failures.append({"step": "user", "error": str(e)})

    if channel is not None:
        channel.disconnect_user(user_id)
    logger.info(
        f"User {user_id} deleted by {actor_id}: removed={report.removed} failures={len(report.failures)}"
    )
    return report
