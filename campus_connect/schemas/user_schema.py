from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from campus_connect.models.user_model import UserRole, UserStatus


class UserSummary(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    department: Optional[str] = None

    class Config:
        from_attributes = True


class UserRead(UserSummary):
    """
    Public view of a user. password_hash is never part of it.
    """
    student_id: Optional[str] = None
    staff_id: Optional[str] = None
    status: UserStatus
    phone: Optional[str] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, example="Dr. Alan Smith")
    email: EmailStr = Field(..., example="alan.smith@campus.edu")
    password: str = Field(..., min_length=6)
    role: UserRole = Field(..., example=UserRole.lecturer)
    department: Optional[str] = None
    student_id: Optional[str] = None
    staff_id: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    department: Optional[str] = None
    student_id: Optional[str] = None
    staff_id: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserStats(BaseModel):
    total: int
    by_role: Dict[str, int]
    by_department: Dict[str, int]
    by_status: Dict[str, int]


class CleanupFailureRead(BaseModel):
    step: str
    error: str


class CleanupReportRead(BaseModel):
    user_id: int
    user_deleted: bool
    removed: Dict[str, int]
    failures: List[CleanupFailureRead]
