from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from campus_connect.models.appointment_model import Appointment
from campus_connect.models.availability_model import StaffAvailability, StaffAvailabilityException
from campus_connect.models.forum_model import Forum, ForumPost
from campus_connect.models.notification_model import Notification
from campus_connect.models.post_model import Comment, Post
from campus_connect.models.token_model import RefreshToken
from campus_connect.models.user_model import User, UserRole
from campus_connect.services import user_service
from campus_connect.services.service_helper import utcnow
from campus_connect.services.user_service import CLEANUP_STEPS, CleanupStep
from tests.utils import auth_headers


def test_admin_creates_lecturer(client, admin):
    body = {
        "name": "Dr. Alan Smith",
        "email": "alan.smith@campus.edu",
        "password": "secret123",
        "role": "lecturer",
        "staff_id": "L-001",
        "department": "Physics",
    }
    response = client.post("/api/admin/users", json=body, headers=auth_headers(admin))
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "lecturer"


def test_list_and_filter_users(client, admin, student, lecturer):
    headers = auth_headers(admin)
    everyone = client.get("/api/admin/users", headers=headers).json()
    assert everyone["pagination"]["total"] == 3

    lecturers = client.get("/api/admin/users", params={"role": "lecturer"}, headers=headers).json()["data"]
    assert [u["id"] for u in lecturers] == [lecturer.id]

    found = client.get("/api/admin/users", params={"search": "jane"}, headers=headers).json()["data"]
    assert [u["id"] for u in found] == [student.id]


def test_user_stats(client, admin, student, lecturer):
    data = client.get("/api/admin/users/stats", headers=auth_headers(admin)).json()["data"]
    assert data["total"] == 3
    assert data["by_role"]["student"] == 1
    assert data["by_status"]["active"] == 3


def test_lecturer_cannot_manage_users(client, lecturer):
    assert client.get("/api/admin/users", headers=auth_headers(lecturer)).status_code == 403


def test_block_revokes_tokens_and_disconnects(client, db, admin, student, realtime):
    db.add(RefreshToken(user_id=student.id, token="refresh-abc", expired_at=utcnow() + timedelta(days=1)))
    db.commit()

    response = client.put(f"/api/admin/users/{student.id}/status", json={"status": "blocked"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "blocked"
    assert realtime.disconnected == [student.id]
    db.expire_all()
    assert db.query(RefreshToken).filter(RefreshToken.revoked.is_(False)).count() == 0


def test_admin_cannot_block_self(client, admin):
    response = client.put(f"/api/admin/users/{admin.id}/status", json={"status": "blocked"}, headers=auth_headers(admin))
    assert response.status_code == 400


# ---------------------------------------------------------
# CASCADING DELETE
# ---------------------------------------------------------

def test_delete_lecturer_leaves_no_orphans(client, db, book, admin, lecturer, student):
    book()
    lecturer_id = lecturer.id
    db.add(Post(author_id=lecturer_id, content="Office hours moved"))
    db.commit()

    response = client.delete(f"/api/admin/users/{lecturer_id}", headers=auth_headers(admin))
    assert response.status_code == 200
    report = response.json()["data"]
    assert report["user_deleted"] is True
    assert report["failures"] == []
    assert report["removed"]["appointments"] == 1
    assert report["removed"]["availability"] == 1

    db.expire_all()
    assert db.get(User, lecturer_id) is None
    assert db.query(Appointment).filter(Appointment.appointee_id == lecturer_id).count() == 0
    assert db.query(StaffAvailability).filter(StaffAvailability.staff_id == lecturer_id).count() == 0
    assert db.query(Notification).filter(Notification.user_id == lecturer_id).count() == 0
    assert db.query(Post).filter(Post.author_id == lecturer_id).count() == 0
    # the student is untouched
    assert db.get(User, student.id) is not None


def test_delete_removes_comments_on_deleted_posts(db, admin, student, lecturer):
    post = Post(author_id=lecturer.id, content="Study group")
    db.add(post)
    db.commit()
    db.add(Comment(post_id=post.id, author_id=student.id, content="Count me in"))
    db.commit()

    report = user_service.delete_user(db, lecturer.id, admin.id)
    assert report.user_deleted
    assert db.query(Comment).count() == 0


def test_delete_removes_forum_content_and_replies(db, admin, student, lecturer, other_lecturer):
    forum = Forum(title="Lab help", created_by=lecturer.id)
    elsewhere = Forum(title="General", created_by=other_lecturer.id)
    db.add_all([forum, elsewhere])
    db.commit()
    question = ForumPost(forum_id=forum.id, author_id=student.id, content="Oscilloscope is broken")
    announcement = ForumPost(forum_id=elsewhere.id, author_id=lecturer.id, content="Labs closed Friday")
    db.add_all([question, announcement])
    db.commit()
    db.add_all([
        ForumPost(forum_id=forum.id, author_id=other_lecturer.id, parent_id=question.id, content="Try bench 3"),
        ForumPost(forum_id=elsewhere.id, author_id=student.id, parent_id=announcement.id, content="Thanks"),
        ForumPost(forum_id=elsewhere.id, author_id=student.id, content="Unrelated question"),
    ])
    db.add(StaffAvailabilityException(staff_id=lecturer.id, exception_date=utcnow().date()))
    db.commit()
    forum_id, elsewhere_id = forum.id, elsewhere.id

    report = user_service.delete_user(db, lecturer.id, admin.id)
    assert report.user_deleted
    assert report.failures == []
    assert report.removed["forum_content"] == 5
    assert report.removed["availability_exceptions"] == 1

    db.expire_all()
    assert db.get(Forum, forum_id) is None
    assert db.get(Forum, elsewhere_id) is not None
    assert [p.content for p in db.query(ForumPost).all()] == ["Unrelated question"]


def test_failing_step_is_reported_and_user_still_deleted(db, admin, student):
    def broken(db, user_id):
        raise SQLAlchemyError("table is locked")

    steps = [CleanupStep("broken", broken)] + CLEANUP_STEPS
    student_id = student.id
    report = user_service.delete_user(db, student_id, admin.id, steps=steps)

    assert report.user_deleted is True
    assert report.failures == [{"step": "broken", "error": "table is locked"}]
    assert "notifications" in report.removed
    db.expire_all()
    assert db.get(User, student_id) is None


def test_admin_cannot_delete_self(client, admin):
    response = client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))
    assert response.status_code == 400


def test_delete_missing_user_is_404(client, admin):
    assert client.delete("/api/admin/users/9999", headers=auth_headers(admin)).status_code == 404
