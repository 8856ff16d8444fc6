import enum

from passlib.context import CryptContext
from sqlalchemy import Column, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import relationship

from campus_connect.config import BCRYPT_ROUNDS
from campus_connect.database import Base
from campus_connect.services.service_helper import utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


class UserRole(str, enum.Enum):
    student = "student"
    lecturer = "lecturer"
    administrator = "administrator"
    admin = "admin"
    sys_admin = "sys_admin"


class UserStatus(str, enum.Enum):
    active = "active"
    blocked = "blocked"


class User(Base):
    """
    Model for the users table.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole, name="user_role_enum"), nullable=False, default=UserRole.student)
    department = Column(String)
    student_id = Column(String, unique=True)
    staff_id = Column(String, unique=True)
    status = Column(Enum(UserStatus, name="user_status_enum"), nullable=False, default=UserStatus.active)
    phone = Column(String)
    bio = Column(Text)
    profile_picture = Column(String)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    refresh_tokens = relationship("RefreshToken", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"

    def verify_password(self, plain_password: str) -> bool:
        return pwd_context.verify(plain_password.encode("utf-8")[:72], self.password_hash)

    def set_password(self, plain_password: str):
        self.password_hash = pwd_context.hash(plain_password.encode("utf-8")[:72])
