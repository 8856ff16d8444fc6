# campus_connect/services/auth_service.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from campus_connect.api.auth import auth
from campus_connect.config import MAX_SYS_ADMINS
from campus_connect.crud import user_crud
from campus_connect.exceptions import AuthenticationError, AuthorizationError, ValidationError
from campus_connect.models.token_model import RefreshToken
from campus_connect.models.user_model import User, UserRole, UserStatus
from campus_connect.schemas.auth_schema import ChangePasswordRequest, RegisterRequest
from campus_connect.services import user_service
from campus_connect.services.service_helper import utcnow

logger = logging.getLogger(__name__)

SELF_REGISTER_FORBIDDEN = frozenset({UserRole.admin})


def issue_tokens(db: Session, user: User) -> dict:
    return {
        "access_token": auth.create_access_token(user),
        "refresh_token": auth.create_refresh_token(user, db),
        "token_type": "bearer",
        "user": user,
    }


def register(db: Session, register_in: RegisterRequest) -> dict:
    """
    Public sign-up. 'admin' accounts are created by admins only and
    'sys_admin' is capped at MAX_SYS_ADMINS accounts.
    """
    if register_in.role in SELF_REGISTER_FORBIDDEN:
        raise ValidationError(f"Role '{register_in.role.value}' cannot be self-registered")
    if register_in.role == UserRole.sys_admin and user_crud.count_users_with_role(db, UserRole.sys_admin) >= MAX_SYS_ADMINS:
        raise ValidationError("Maximum number of system administrators reached")

    fields = register_in.model_dump()
    db_user = user_service.create_user(db, fields)
    logger.info(f"User {db_user.id} registered as {db_user.role.value}")
    return issue_tokens(db, db_user)


def login(db: Session, email: str, password: str) -> dict:
    db_user = user_crud.get_user_by_email(db, email)
    if not db_user or not db_user.verify_password(password):
        logger.info(f"Failed login for {email}")
        raise AuthenticationError("Invalid email or password")
    if db_user.status == UserStatus.blocked:
        raise AuthorizationError("Account is blocked")
    user_crud.update_user(db, db_user, {"last_login": utcnow()})
    return issue_tokens(db, db_user)


def refresh(db: Session, refresh_token: str) -> dict:
    """Rotate: the presented refresh token is revoked and a new pair is issued."""
    db_user = auth.verify_refresh_token(refresh_token, db)
    if db_user.status == UserStatus.blocked:
        raise AuthorizationError("Account is blocked")
    auth.revoke_refresh_token(refresh_token, db)
    return issue_tokens(db, db_user)


def logout(db: Session, user_id: int, refresh_token: Optional[str] = None) -> int:
    if refresh_token:
        owner = db.query(RefreshToken.id).filter(
            RefreshToken.token == refresh_token,
            RefreshToken.user_id == user_id,
        ).first()
        if owner is None:
            raise AuthenticationError("Invalid refresh token")
        return int(auth.revoke_refresh_token(refresh_token, db))
    return auth.revoke_all_refresh_tokens(user_id, db)


def get_profile(db: Session, user_id: int) -> User:
    return user_service.get_user_or_404(db, user_id)


def update_profile(db: Session, user_id: int, update_data: dict) -> User:
    db_user = user_service.get_user_or_404(db, user_id)
    return user_crud.update_user(db, db_user, update_data)


def change_password(db: Session, user_id: int, change_in: ChangePasswordRequest) -> None:
    db_user = user_service.get_user_or_404(db, user_id)
    if not db_user.verify_password(change_in.current_password):
        raise ValidationError("Current password is incorrect")
    if change_in.current_password == change_in.new_password:
        raise ValidationError("New password must differ from the current one")
    db_user.set_password(change_in.new_password)
    db.commit()
    auth.revoke_all_refresh_tokens(user_id, db)
    logger.info(f"User {user_id} changed password")
