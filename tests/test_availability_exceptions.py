from datetime import timedelta

from campus_connect.models.appointment_model import Appointment
from campus_connect.models.availability_model import StaffAvailabilityException
from campus_connect.models.user_model import UserRole
from campus_connect.services.service_helper import utcnow
from tests.utils import auth_headers, iso_utc, next_week_at

URL = "/api/lecturer/availability/exceptions"


def next_week_date() -> str:
    return next_week_at().date().isoformat()


def add_exception(client, staff, **body):
    body.setdefault("exception_date", next_week_date())
    response = client.post(URL, json=body, headers=auth_headers(staff))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def request_booking(client, requester, appointee, when):
    payload = {"appointee_id": appointee.id, "appointment_time": iso_utc(when), "duration_minutes": 30}
    return client.post("/api/student/appointments", json=payload, headers=auth_headers(requester))


# ---------------------------------------------------------
# MANAGING EXCEPTIONS
# ---------------------------------------------------------

def test_lecturer_blocks_a_date_and_lists_it(client, lecturer):
    created = add_exception(client, lecturer, reason="Conference travel")
    assert created["staff_id"] == lecturer.id
    assert created["exception_type"] == "unavailable"
    assert created["start_time"] is None
    assert created["is_recurring"] is False

    listed = client.get(URL, headers=auth_headers(lecturer)).json()["data"]
    assert [e["id"] for e in listed] == [created["id"]]


def test_list_filters_by_type_and_range(client, lecturer):
    blocked = add_exception(client, lecturer)
    later = (next_week_at() + timedelta(days=3)).date().isoformat()
    modified = add_exception(
        client, lecturer, exception_date=later, exception_type="modified_hours", start_time="13:00", end_time="15:00"
    )

    by_type = client.get(URL, params={"exception_type": "modified_hours"}, headers=auth_headers(lecturer)).json()
    assert [e["id"] for e in by_type["data"]] == [modified["id"]]

    by_range = client.get(URL, params={"end_date": next_week_date()}, headers=auth_headers(lecturer)).json()
    assert [e["id"] for e in by_range["data"]] == [blocked["id"]]

    inverted = client.get(
        URL, params={"start_date": later, "end_date": next_week_date()}, headers=auth_headers(lecturer)
    )
    assert inverted.status_code == 400


def test_upcoming_only_covers_the_requested_window(client, lecturer):
    soon = add_exception(client, lecturer)
    far = (utcnow() + timedelta(days=60)).date().isoformat()
    add_exception(client, lecturer, exception_date=far)
    past = (utcnow() - timedelta(days=3)).date().isoformat()
    add_exception(client, lecturer, exception_date=past)

    upcoming = client.get(f"{URL}/upcoming", headers=auth_headers(lecturer)).json()["data"]
    assert [e["id"] for e in upcoming] == [soon["id"]]

    wider = client.get(f"{URL}/upcoming", params={"days": 90}, headers=auth_headers(lecturer)).json()["data"]
    assert len(wider) == 2


def test_hours_must_match_the_exception_type(client, lecturer):
    headers = auth_headers(lecturer)
    day = next_week_date()

    with_hours = {"exception_date": day, "exception_type": "unavailable", "start_time": "09:00", "end_time": "10:00"}
    assert client.post(URL, json=with_hours, headers=headers).status_code == 400

    missing_hours = {"exception_date": day, "exception_type": "extra_hours"}
    assert client.post(URL, json=missing_hours, headers=headers).status_code == 400

    inverted = {"exception_date": day, "exception_type": "modified_hours", "start_time": "15:00", "end_time": "13:00"}
    response = client.post(URL, json=inverted, headers=headers)
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_students_cannot_manage_exceptions(client, student):
    response = client.post(URL, json={"exception_date": next_week_date()}, headers=auth_headers(student))
    assert response.status_code == 403


def test_only_the_owner_edits_or_deletes(client, lecturer, other_lecturer):
    created = add_exception(client, lecturer)
    url = f"{URL}/{created['id']}"

    assert client.put(url, json={"reason": "Mine now"}, headers=auth_headers(other_lecturer)).status_code == 403
    assert client.delete(url, headers=auth_headers(other_lecturer)).status_code == 403
    missing = client.put(f"{URL}/4242", json={"reason": "x"}, headers=auth_headers(lecturer))
    assert missing.status_code == 404
    assert missing.json()["message"] == "Availability exception not found"


def test_update_checks_hours_against_stored_values(client, lecturer):
    created = add_exception(client, lecturer, exception_type="modified_hours", start_time="13:00", end_time="15:00")
    url = f"{URL}/{created['id']}"

    inverted = client.put(url, json={"end_time": "12:00"}, headers=auth_headers(lecturer))
    assert inverted.status_code == 400
    assert client.put(url, json={"exception_date": None}, headers=auth_headers(lecturer)).status_code == 400

    widened = client.put(url, json={"end_time": "17:00"}, headers=auth_headers(lecturer))
    assert widened.status_code == 200
    assert widened.json()["data"]["end_time"] == "17:00:00"


def test_switching_to_unavailable_clears_hours(client, lecturer):
    created = add_exception(client, lecturer, exception_type="extra_hours", start_time="19:00", end_time="20:00")
    response = client.put(
        f"{URL}/{created['id']}", json={"exception_type": "unavailable"}, headers=auth_headers(lecturer)
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["exception_type"] == "unavailable"
    assert data["start_time"] is None and data["end_time"] is None


def test_owner_deletes_exception(client, db, lecturer):
    created = add_exception(client, lecturer)
    response = client.delete(f"{URL}/{created['id']}", headers=auth_headers(lecturer))
    assert response.status_code == 200
    db.expire_all()
    assert db.get(StaffAvailabilityException, created["id"]) is None


# ---------------------------------------------------------
# BOOKING AROUND EXCEPTIONS
# ---------------------------------------------------------

def test_booking_on_an_unavailable_date_is_refused(client, db, student, lecturer, make_slot):
    make_slot(lecturer)
    add_exception(client, lecturer, reason="Sick leave")

    response = request_booking(client, student, lecturer, next_week_at(10))
    assert response.status_code == 400
    assert response.json()["message"] == "The staff member is unavailable on this date"
    assert db.query(Appointment).count() == 0


def test_deleting_the_block_reopens_the_date(client, student, lecturer, make_slot):
    make_slot(lecturer)
    created = add_exception(client, lecturer)
    client.delete(f"{URL}/{created['id']}", headers=auth_headers(lecturer))

    assert request_booking(client, student, lecturer, next_week_at(10)).status_code == 201


def test_modified_hours_narrow_the_day(client, student, lecturer, make_slot):
    make_slot(lecturer)
    add_exception(client, lecturer, exception_type="modified_hours", start_time="13:00", end_time="15:00")

    outside = request_booking(client, student, lecturer, next_week_at(10))
    assert outside.status_code == 400
    assert outside.json()["message"] == "The requested time is outside the staff member's hours for this date"

    assert request_booking(client, student, lecturer, next_week_at(13, 30)).status_code == 201


def test_extra_hours_open_a_window_without_a_slot(client, make_user, student, lecturer, make_slot):
    make_slot(lecturer)
    assert request_booking(client, student, lecturer, next_week_at(19)).status_code == 400

    add_exception(client, lecturer, exception_type="extra_hours", start_time="19:00", end_time="20:00")
    assert request_booking(client, student, lecturer, next_week_at(19)).status_code == 201

    classmate = make_user(UserRole.student)
    full = request_booking(client, classmate, lecturer, next_week_at(19))
    assert full.status_code == 400
    assert full.json()["error"]["code"] == "conflict"


def test_exceptions_of_another_lecturer_do_not_apply(client, student, lecturer, other_lecturer, make_slot):
    make_slot(lecturer)
    add_exception(client, other_lecturer)
    assert request_booking(client, student, lecturer, next_week_at(10)).status_code == 201
