from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from campus_connect.models.user_model import UserRole
from campus_connect.schemas.user_schema import UserRead


class AuthenticatedUser(BaseModel):
    """Identity carried by a verified access token."""
    id: int = Field(..., example=1)
    email: EmailStr = Field(..., example="jane.doe@campus.edu")
    role: UserRole = Field(..., example=UserRole.student)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, example="Jane Doe")
    email: EmailStr = Field(..., example="jane.doe@campus.edu")
    password: str = Field(..., min_length=6, example="secret123")
    role: UserRole = Field(UserRole.student, example=UserRole.student)
    department: Optional[str] = Field(None, example="Computer Science")
    student_id: Optional[str] = Field(None, example="S2024001")
    staff_id: Optional[str] = Field(None, example=None)
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., example="jane.doe@campus.edu")
    password: str = Field(..., example="secret123")

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthPayload(TokenPair):
    user: UserRead


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    department: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)
