from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from campus_connect.models.user_model import User, UserRole, UserStatus


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def get_user_by_student_id(db: Session, student_id: str) -> Optional[User]:
    return db.query(User).filter(User.student_id == student_id).first()


def get_user_by_staff_id(db: Session, staff_id: str) -> Optional[User]:
    return db.query(User).filter(User.staff_id == staff_id).first()


def get_users_by_ids(db: Session, user_ids: List[int]) -> List[User]:
    if not user_ids:
        return []
    return db.query(User).filter(User.id.in_(user_ids)).all()


def count_users_with_role(db: Session, role: UserRole) -> int:
    return db.query(func.count(User.id)).filter(User.role == role).scalar() or 0


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 20,
    role: Optional[UserRole] = None,
    department: Optional[str] = None,
    status: Optional[UserStatus] = None,
    search: Optional[str] = None,
) -> Tuple[List[User], int]:
    """Filtered, paginated users ordered newest first."""
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if department:
        query = query.filter(User.department == department)
    if status:
        query = query.filter(User.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            User.name.ilike(pattern),
            User.email.ilike(pattern),
            User.student_id.ilike(pattern),
            User.staff_id.ilike(pattern),
        ))
    total = query.count()
    rows = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def create_user(db: Session, **fields) -> User:
    password = fields.pop("password")
    db_user = User(**fields)
    db_user.set_password(password)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, db_user: User, update_data: dict) -> User:
    for key, value in update_data.items():
        setattr(db_user, key, value)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def group_counts(db: Session, column) -> dict:
    rows = db.query(column, func.count(User.id)).group_by(column).all()
    return {
        (key.value if hasattr(key, "value") else (key or "unassigned")): count
        for key, count in rows
    }
