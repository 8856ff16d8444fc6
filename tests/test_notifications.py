import pytest
from sqlalchemy.exc import SQLAlchemyError

from campus_connect.exceptions import UpstreamError
from campus_connect.models.notification_model import Notification
from campus_connect.realtime.channel import RealtimeChannel
from campus_connect.services.notification_service import NotificationService
from tests.utils import auth_headers


@pytest.fixture
def notify(db, realtime):
    service = NotificationService(db, realtime)

    def _notify(user, content="Hello", type="system"):
        return service.create_and_send(user_id=user.id, type=type, content=content)

    return _notify


def test_create_and_send_persists_then_pushes(db, student, realtime, notify):
    notification = notify(student, content="Welcome")
    assert db.query(Notification).count() == 1
    assert realtime.emitted == [
        {
            "event": "newNotification",
            "data": {
                "id": notification.id,
                "user_id": student.id,
                "type": "system",
                "content": "Welcome",
                "source_table": None,
                "source_id": None,
                "source_details": None,
                "is_read": False,
                "created_at": notification.created_at.isoformat(),
            },
            "to": [f"user_{student.id}", f"notifications_{student.id}"],
        }
    ]


def test_unbound_channel_still_persists(db, student):
    service = NotificationService(db, RealtimeChannel())
    service.create_and_send(user_id=student.id, type="system", content="Stored only")
    assert db.query(Notification).filter(Notification.user_id == student.id).count() == 1


def test_persist_failure_raises_upstream_error(db, student, realtime, monkeypatch):
    def broken_insert(*args, **kwargs):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr("campus_connect.crud.notification_crud.create_notification", broken_insert)
    with pytest.raises(UpstreamError):
        NotificationService(db, realtime).create_and_send(user_id=student.id, type="system", content="x")
    assert realtime.emitted == []


def test_notify_many_skips_duplicates(db, student, lecturer, realtime):
    NotificationService(db, realtime).notify_many([student.id, lecturer.id, student.id], type="system", content="Hi")
    assert db.query(Notification).count() == 2


def test_list_is_newest_first_and_paginated(client, student, notify):
    for i in range(3):
        notify(student, content=f"n{i}")
    body = client.get("/api/shared/notifications", params={"limit": 2}, headers=auth_headers(student)).json()
    assert [n["content"] for n in body["data"]] == ["n2", "n1"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}


def test_mark_all_read_empties_unread(client, student, notify):
    notify(student)
    notify(student)
    headers = auth_headers(student)

    assert client.get("/api/shared/notifications/unread-count", headers=headers).json()["data"] == {"unread": 2}
    marked = client.put("/api/shared/notifications/mark-all-read", headers=headers)
    assert marked.status_code == 200
    assert marked.json()["data"] == {"updated": 2}

    assert client.get("/api/shared/notifications/unread", headers=headers).json()["data"] == []
    assert client.get("/api/shared/notifications/unread-count", headers=headers).json()["data"] == {"unread": 0}


def test_mark_read_is_idempotent(client, student, notify):
    notification = notify(student)
    url = f"/api/shared/notifications/{notification.id}/read"
    first = client.put(url, headers=auth_headers(student))
    second = client.put(url, headers=auth_headers(student))
    assert first.status_code == second.status_code == 200
    assert second.json()["data"]["is_read"] is True


def test_mark_read_of_someone_elses_notification_is_403(client, student, lecturer, notify):
    notification = notify(lecturer)
    response = client.put(f"/api/shared/notifications/{notification.id}/read", headers=auth_headers(student))
    assert response.status_code == 403
    assert response.json()["message"] == "You do not own this notification"


def test_mark_read_missing_is_404(client, student):
    response = client.put("/api/shared/notifications/777/read", headers=auth_headers(student))
    assert response.status_code == 404


def test_delete_own_notification(client, db, student, lecturer, notify):
    mine = notify(student)
    theirs = notify(lecturer)
    mine_id, theirs_id = mine.id, theirs.id

    assert client.delete(f"/api/shared/notifications/{theirs_id}", headers=auth_headers(student)).status_code == 403
    assert client.delete(f"/api/shared/notifications/{mine_id}", headers=auth_headers(student)).status_code == 200
    db.expire_all()
    assert db.get(Notification, mine_id) is None
    assert db.get(Notification, theirs_id) is not None
