from datetime import timedelta

import pytest

from campus_connect.api.auth.auth import create_access_token, decode_access_token
from campus_connect.exceptions import AuthenticationError
from campus_connect.models.token_model import RefreshToken
from campus_connect.models.user_model import UserRole, UserStatus
from tests.utils import PASSWORD, auth_headers


def register(client, **overrides):
    body = {
        "name": "Jane Doe",
        "email": "Jane.Doe@Campus.edu",
        "password": "secret123",
        "student_id": "S2024001",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def test_register_returns_tokens_without_password(client, db):
    response = register(client)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "jane.doe@campus.edu"
    assert data["user"]["role"] == "student"
    assert "password_hash" not in data["user"]

    identity = decode_access_token(data["access_token"])
    assert identity.id == data["user"]["id"]
    assert identity.role == UserRole.student


def test_register_duplicate_email_is_400(client):
    register(client)
    response = register(client, student_id="S2024002")
    assert response.status_code == 400
    assert response.json()["message"] == "Email already registered"


def test_register_admin_role_is_rejected(client):
    response = register(client, role="admin", student_id=None)
    assert response.status_code == 400


def test_sys_admin_registration_is_capped(client, make_user):
    make_user(UserRole.sys_admin)
    make_user(UserRole.sys_admin)
    response = register(client, role="sys_admin", student_id=None)
    assert response.status_code == 400
    assert response.json()["message"] == "Maximum number of system administrators reached"


def test_student_id_is_for_students_only(client):
    response = register(client, role="lecturer")
    assert response.status_code == 400


def test_login_and_profile(client, student):
    response = client.post("/api/auth/login", json={"email": student.email, "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["data"]["access_token"]

    profile = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    assert profile.json()["data"]["id"] == student.id
    assert profile.json()["data"]["last_login"] is not None


def test_login_with_wrong_password_is_401(client, student):
    response = client.post("/api/auth/login", json={"email": student.email, "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_blocked_user_cannot_log_in_or_use_tokens(client, db, student):
    headers = auth_headers(student)
    student.status = UserStatus.blocked
    db.commit()

    login = client.post("/api/auth/login", json={"email": student.email, "password": PASSWORD})
    assert login.status_code == 403
    assert client.get("/api/auth/profile", headers=headers).status_code == 403


def test_expired_access_token_is_401(client, student):
    token = create_access_token(student, expires_delta=timedelta(seconds=-5))
    response = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired"


def test_refresh_token_is_not_an_access_token(client):
    tokens = register(client).json()["data"]
    with pytest.raises(AuthenticationError):
        decode_access_token(tokens["refresh_token"])


def test_refresh_rotates_the_token(client):
    tokens = register(client).json()["data"]
    first = client.post("/api/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
    assert first.status_code == 200
    assert first.json()["data"]["refresh_token"] != tokens["refresh_token"]

    replay = client.post("/api/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
    assert replay.status_code == 401


def test_logout_revokes_refresh_tokens(client, db):
    tokens = register(client).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    response = client.post("/api/auth/logout", json={}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"revoked": 1}
    assert db.query(RefreshToken).filter(RefreshToken.revoked.is_(False)).count() == 0

    refreshed = client.post("/api/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 401


def test_update_profile(client, student):
    response = client.put(
        "/api/auth/profile",
        json={"bio": "Second-year CS", "phone": "+84 90 000 0000"},
        headers=auth_headers(student),
    )
    assert response.status_code == 200
    assert response.json()["data"]["bio"] == "Second-year CS"


def test_change_password(client, student):
    headers = auth_headers(student)
    wrong = client.put(
        "/api/auth/change-password",
        json={"current_password": "nope-nope", "new_password": "brand-new-1"},
        headers=headers,
    )
    assert wrong.status_code == 400

    ok = client.put(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "brand-new-1"},
        headers=headers,
    )
    assert ok.status_code == 200
    login = client.post("/api/auth/login", json={"email": student.email, "password": "brand-new-1"})
    assert login.status_code == 200
