# campus_connect/api/auth/auth.py
import logging
import uuid
from datetime import timedelta
from typing import Callable, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt  # type: ignore
from sqlalchemy.orm import Session

from campus_connect.api.auth.permissions import Capability, can
from campus_connect.api.deps import get_db
from campus_connect.config import (
    ACCESS_TOKEN_EXPIRE,
    JWT_ALGORITHM,
    JWT_REFRESH_SECRET,
    JWT_SECRET,
    REFRESH_TOKEN_EXPIRE,
)
from campus_connect.exceptions import AuthenticationError, AuthorizationError
from campus_connect.models.token_model import RefreshToken
from campus_connect.models.user_model import User, UserStatus
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.services.service_helper import utcnow

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _claims(user: User) -> Dict:
    return {"id": user.id, "email": user.email, "role": user.role.value}


def _encode(data: Dict, secret: str, expires_delta: timedelta, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": utcnow() + expires_delta, "type": token_type})
    return jwt.encode(to_encode, secret, algorithm=JWT_ALGORITHM)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(_claims(user), JWT_SECRET, expires_delta or ACCESS_TOKEN_EXPIRE, "access")


def create_refresh_token(user: User, db: Session) -> str:
    """Sign a refresh token and record it so logout can revoke it."""
    claims = _claims(user)
    claims["jti"] = str(uuid.uuid4())
    token = _encode(claims, JWT_REFRESH_SECRET, REFRESH_TOKEN_EXPIRE, "refresh")
    db.add(RefreshToken(token=token, user_id=user.id, expired_at=utcnow() + REFRESH_TOKEN_EXPIRE))
    db.commit()
    return token


def _decode(token: str, secret: str, token_type: str) -> Dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError:
        raise AuthenticationError("Invalid token")
    if payload.get("type") != token_type or payload.get("id") is None:
        raise AuthenticationError("Invalid token")
    return payload


def decode_access_token(token: str) -> AuthenticatedUser:
    payload = _decode(token, JWT_SECRET, "access")
    try:
        return AuthenticatedUser(id=payload["id"], email=payload["email"], role=payload["role"])
    except (KeyError, ValueError):
        raise AuthenticationError("Invalid token")


def make_socket_authenticator(session_factory: Callable[[], Session]) -> Callable[[str], AuthenticatedUser]:
    """
    Token check for the Socket.IO handshake. A valid signature is not enough:
    the account must still exist and must not be blocked.
    """
    def authenticate(token: str) -> AuthenticatedUser:
        token_user = decode_access_token(token)
        db = session_factory()
        try:
            user = db.query(User).filter(User.id == token_user.id).first()
            if not user:
                raise AuthenticationError("User no longer exists")
            if user.status == UserStatus.blocked:
                raise AuthenticationError("Account is blocked")
            return AuthenticatedUser(id=user.id, email=user.email, role=user.role)
        finally:
            db.close()
    return authenticate


def verify_refresh_token(token: str, db: Session) -> User:
    payload = _decode(token, JWT_REFRESH_SECRET, "refresh")
    db_token = db.query(RefreshToken).filter(
        RefreshToken.token == token,
        RefreshToken.revoked.is_(False),
        RefreshToken.expired_at > utcnow(),
    ).first()
    if not db_token or db_token.user_id != payload["id"]:
        raise AuthenticationError("Invalid refresh token")
    return db_token.user


def revoke_refresh_token(token: str, db: Session) -> bool:
    db_token = db.query(RefreshToken).filter(RefreshToken.token == token).first()
    if not db_token:
        return False
    db_token.revoked = True
    db.commit()
    return True


def revoke_all_refresh_tokens(user_id: int, db: Session) -> int:
    revoked = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.revoked.is_(False))
        .update({RefreshToken.revoked: True}, synchronize_session=False)
    )
    db.commit()
    return revoked


def get_current_active_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthenticatedUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token is required")
    token_user = decode_access_token(credentials.credentials)
    user = db.query(User).filter(User.id == token_user.id).first()
    if not user:
        raise AuthenticationError("User no longer exists")
    if user.status == UserStatus.blocked:
        raise AuthorizationError("Account is blocked")
    return AuthenticatedUser(id=user.id, email=user.email, role=user.role)


def require_capability(capability: Capability):
    """
    Dependency factory gating a route on one capability of the caller's role.
    """
    def capability_checker(current_user: AuthenticatedUser = Depends(get_current_active_user)) -> AuthenticatedUser:
        if not can(current_user.role, capability):
            logger.info(f"User {current_user.id} ({current_user.role.value}) denied {capability.value}")
            raise AuthorizationError("You do not have permission to perform this action")
        return current_user
    return capability_checker
