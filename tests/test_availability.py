from datetime import time

from campus_connect.crud import availability_crud
from campus_connect.crud.ownership import MutationOutcome
from campus_connect.models.availability_model import StaffAvailability
from tests.utils import auth_headers

SLOT = {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00", "location": "Room B-204"}


def test_lecturer_creates_and_lists_own_slots(client, lecturer):
    created = client.post("/api/lecturer/availability", json=SLOT, headers=auth_headers(lecturer))
    assert created.status_code == 201
    data = created.json()["data"]
    assert data["staff_id"] == lecturer.id
    assert data["start_time"] == "09:00:00"
    assert data["max_appointments_per_slot"] == 1

    listed = client.get("/api/lecturer/availability", headers=auth_headers(lecturer)).json()["data"]
    assert [s["id"] for s in listed] == [data["id"]]


def test_administrator_portal_shares_the_routes(client, make_user):
    from campus_connect.models.user_model import UserRole

    registrar = make_user(UserRole.administrator)
    response = client.post("/api/administrator/availability", json=SLOT, headers=auth_headers(registrar))
    assert response.status_code == 201


def test_slot_needs_day_or_date(client, lecturer):
    body = {"start_time": "09:00", "end_time": "12:00"}
    response = client.post("/api/lecturer/availability", json=body, headers=auth_headers(lecturer))
    assert response.status_code == 400


def test_slot_end_must_follow_start(client, lecturer):
    body = dict(SLOT, start_time="12:00", end_time="09:00")
    response = client.post("/api/lecturer/availability", json=body, headers=auth_headers(lecturer))
    assert response.status_code == 400


def test_timezone_suffix_is_dropped(client, lecturer):
    body = dict(SLOT, start_time="09:00:00Z", end_time="10:30:00Z")
    response = client.post("/api/lecturer/availability", json=body, headers=auth_headers(lecturer))
    assert response.status_code == 201
    assert response.json()["data"]["end_time"] == "10:30:00"


def test_bulk_create(client, lecturer):
    body = {"slots": [dict(SLOT, day_of_week=day) for day in (1, 2, 3)]}
    response = client.post("/api/lecturer/availability/bulk", json=body, headers=auth_headers(lecturer))
    assert response.status_code == 201
    assert len(response.json()["data"]) == 3

    summary = client.get("/api/lecturer/availability/summary", headers=auth_headers(lecturer)).json()["data"]
    assert summary["total_slots"] == 3
    assert summary["days_covered"] == [1, 2, 3]


def test_students_cannot_publish_availability(client, student):
    response = client.post("/api/lecturer/availability", json=SLOT, headers=auth_headers(student))
    assert response.status_code == 403


# ---------------------------------------------------------
# OWNERSHIP: missing vs someone else's
# ---------------------------------------------------------

def test_update_missing_slot_is_404(client, lecturer):
    response = client.put("/api/lecturer/availability/999", json={"notes": "x"}, headers=auth_headers(lecturer))
    assert response.status_code == 404
    assert response.json()["message"] == "Availability slot not found"


def test_update_other_lecturers_slot_is_403(client, lecturer, other_lecturer, make_slot):
    slot = make_slot(other_lecturer)
    response = client.put(f"/api/lecturer/availability/{slot.id}", json={"notes": "x"}, headers=auth_headers(lecturer))
    assert response.status_code == 403


def test_toggle_and_delete_own_slot(client, db, lecturer, make_slot):
    slot = make_slot(lecturer)
    slot_id = slot.id

    toggled = client.patch(f"/api/lecturer/availability/{slot_id}/toggle", headers=auth_headers(lecturer))
    assert toggled.status_code == 200
    assert toggled.json()["data"]["is_active"] is False

    deleted = client.delete(f"/api/lecturer/availability/{slot_id}", headers=auth_headers(lecturer))
    assert deleted.status_code == 200
    db.expire_all()
    assert db.get(StaffAvailability, slot_id) is None


def test_update_rejects_inverted_window(client, lecturer, make_slot):
    slot = make_slot(lecturer, start=time(9, 0), end=time(12, 0))
    response = client.put(
        f"/api/lecturer/availability/{slot.id}",
        json={"end_time": "08:00"},
        headers=auth_headers(lecturer),
    )
    assert response.status_code == 400


def test_update_rejects_null_on_required_columns(client, db, lecturer, make_slot):
    slot = make_slot(lecturer, start=time(9, 0), end=time(12, 0))
    for field in ("start_time", "end_time", "slot_duration_minutes", "is_active"):
        response = client.put(
            f"/api/lecturer/availability/{slot.id}",
            json={field: None},
            headers=auth_headers(lecturer),
        )
        assert response.status_code == 400, field

    db.expire_all()
    assert db.get(StaffAvailability, slot.id).start_time == time(9, 0)


def test_update_accepts_null_on_optional_columns(client, lecturer, make_slot):
    slot = make_slot(lecturer, location="Room B-204")
    response = client.put(
        f"/api/lecturer/availability/{slot.id}",
        json={"location": None},
        headers=auth_headers(lecturer),
    )
    assert response.status_code == 200
    assert response.json()["data"]["location"] is None


def test_owned_lookup_outcomes(db, lecturer, other_lecturer, make_slot):
    slot = make_slot(lecturer)
    assert availability_crud.find_owned_slot(db, slot.id, lecturer.id).outcome == MutationOutcome.applied
    assert availability_crud.find_owned_slot(db, slot.id, other_lecturer.id).outcome == MutationOutcome.not_owner
    assert availability_crud.find_owned_slot(db, 12345, lecturer.id).outcome == MutationOutcome.not_found


# ---------------------------------------------------------
# BROWSING & ADMIN
# ---------------------------------------------------------

def test_anyone_signed_in_can_browse_active_slots(client, student, lecturer, make_slot):
    make_slot(lecturer)
    make_slot(lecturer, is_active=False)
    response = client.get(f"/api/shared/availability/staff/{lecturer.id}", headers=auth_headers(student))
    assert response.status_code == 200
    assert len(response.json()["data"]) == 1


def test_browsing_a_student_is_404(client, student):
    response = client.get(f"/api/shared/availability/staff/{student.id}", headers=auth_headers(student))
    assert response.status_code == 404


def test_admin_manages_any_slot(client, admin, lecturer):
    created = client.post(
        "/api/admin/availability",
        json=dict(SLOT, staff_id=lecturer.id),
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    slot_id = created.json()["data"]["id"]
    assert created.json()["data"]["staff_id"] == lecturer.id

    listed = client.get("/api/admin/availability", params={"staff_id": lecturer.id}, headers=auth_headers(admin))
    assert [s["id"] for s in listed.json()["data"]] == [slot_id]

    deleted = client.delete(f"/api/admin/availability/{slot_id}", headers=auth_headers(admin))
    assert deleted.status_code == 200


def test_admin_cannot_create_slot_for_student(client, admin, student):
    response = client.post("/api/admin/availability", json=dict(SLOT, staff_id=student.id), headers=auth_headers(admin))
    assert response.status_code == 400
