from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campus_connect.api import deps
from campus_connect.api.auth.auth import get_current_active_user
from campus_connect.schemas import auth_schema
from campus_connect.schemas.auth_schema import AuthenticatedUser
from campus_connect.schemas.common_schema import Envelope
from campus_connect.schemas.user_schema import UserRead
from campus_connect.services import auth_service

router = APIRouter()


@router.post(
    "/register",
    response_model=Envelope[auth_schema.AuthPayload],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
def register(register_in: auth_schema.RegisterRequest, db: Session = Depends(deps.get_db)):
    payload = auth_service.register(db, register_in)
    return {"success": True, "message": "User registered successfully", "data": payload}


@router.post("/login", response_model=Envelope[auth_schema.AuthPayload], summary="Log in with email and password")
def login(login_in: auth_schema.LoginRequest, db: Session = Depends(deps.get_db)):
    payload = auth_service.login(db, login_in.email, login_in.password)
    return {"success": True, "message": "Login successful", "data": payload}


@router.post("/refresh-token", response_model=Envelope[auth_schema.AuthPayload], summary="Exchange a refresh token")
def refresh_token(refresh_in: auth_schema.RefreshTokenRequest, db: Session = Depends(deps.get_db)):
    payload = auth_service.refresh(db, refresh_in.refresh_token)
    return {"success": True, "message": "Token refreshed", "data": payload}


@router.post("/logout", response_model=Envelope[dict], summary="Revoke refresh tokens")
def logout(
    logout_in: auth_schema.LogoutRequest,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """
    Revokes the given refresh token, or every refresh token of the caller
    when none is given.
    """
    revoked = auth_service.logout(db, current_user.id, logout_in.refresh_token)
    return {"success": True, "message": "Logged out", "data": {"revoked": revoked}}


@router.get("/profile", response_model=Envelope[UserRead], summary="Current user's profile")
def get_profile(
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    return {"success": True, "data": auth_service.get_profile(db, current_user.id)}


@router.put("/profile", response_model=Envelope[UserRead], summary="Update current user's profile")
def update_profile(
    profile_in: auth_schema.ProfileUpdate,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    db_user = auth_service.update_profile(db, current_user.id, profile_in.model_dump(exclude_unset=True))
    return {"success": True, "message": "Profile updated", "data": db_user}


@router.put("/change-password", response_model=Envelope[dict], summary="Change password")
def change_password(
    change_in: auth_schema.ChangePasswordRequest,
    db: Session = Depends(deps.get_db),
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    auth_service.change_password(db, current_user.id, change_in)
    return {"success": True, "message": "Password changed successfully"}
