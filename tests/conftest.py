import os

# Settings are read at import time; keep these above the application imports.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["APP_ENV"] = "test"

from datetime import datetime, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campus_connect.api.deps import get_channel, get_db
from campus_connect.crud import user_crud
from campus_connect.database import Base
from campus_connect.models.availability_model import StaffAvailability
from campus_connect.models.user_model import UserRole
from campus_connect.realtime.channel import RealtimeChannel
from campus_connect.services.service_helper import day_of_week_sunday_first
from main import app
from tests.utils import PASSWORD, auth_headers, iso_utc, next_week_at

# 1. SQLite in-memory database shared by every session
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingChannel(RealtimeChannel):
    """Channel double that records emits instead of talking to Socket.IO."""

    def __init__(self):
        super().__init__()
        self.emitted = []
        self.disconnected = []

    @property
    def is_bound(self) -> bool:
        return True

    def emit(self, event, data, to=None):
        self.emitted.append({"event": event, "data": data, "to": to})
        return True

    def disconnect_user(self, user_id: int) -> int:
        self.disconnected.append(user_id)
        return 1

    def notifications_for(self, user_id: int):
        room = f"user_{user_id}"
        return [
            e["data"] for e in self.emitted
            if e["event"] == "newNotification" and room in (e["to"] if isinstance(e["to"], list) else [e["to"]])
        ]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def realtime():
    return RecordingChannel()


@pytest.fixture
def client(db, realtime):
    # 2. Override the DB and real-time dependencies
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_channel] = lambda: realtime
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------
# FACTORIES
# ---------------------------------------------------------

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role: UserRole = UserRole.student, name: str = None, **fields):
        counter["n"] += 1
        n = counter["n"]
        fields.setdefault("email", f"{role.value}{n}@campus.edu")
        if role == UserRole.student:
            fields.setdefault("student_id", f"S{n:05d}")
        return user_crud.create_user(
            db,
            name=name or f"{role.value.title()} {n}",
            password=PASSWORD,
            role=role,
            **fields,
        )

    return _make_user


@pytest.fixture
def student(make_user):
    return make_user(UserRole.student, name="Jane Student")


@pytest.fixture
def lecturer(make_user):
    return make_user(UserRole.lecturer, name="Alan Lecturer", department="Computer Science")


@pytest.fixture
def other_lecturer(make_user):
    return make_user(UserRole.lecturer, name="Grace Lecturer")


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.admin, name="Ada Admin")


@pytest.fixture
def make_slot(db):
    def _make_slot(staff, on: datetime = None, start=time(8, 0), end=time(18, 0), **fields):
        on = on or next_week_at()
        fields.setdefault("day_of_week", day_of_week_sunday_first(on.date()))
        slot = StaffAvailability(staff_id=staff.id, start_time=start, end_time=end, **fields)
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make_slot


@pytest.fixture
def book(client, student, lecturer, make_slot):
    """Book a pending appointment of `student` with `lecturer` next week."""
    make_slot(lecturer)

    def _book(when: datetime = None, requester=None, appointee=None, **body):
        requester = requester or student
        appointee = appointee or lecturer
        payload = {
            "appointee_id": appointee.id,
            "appointment_time": iso_utc(when or next_week_at()),
            "duration_minutes": 30,
            "reason": "Thesis proposal review",
        }
        payload.update(body)
        prefix = "student" if requester.role == UserRole.student else requester.role.value
        response = client.post(f"/api/{prefix}/appointments", json=payload, headers=auth_headers(requester))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _book
