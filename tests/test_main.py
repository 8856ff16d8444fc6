from tests.utils import auth_headers


def test_read_main(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Welcome to the Campus Connect API! Visit /docs for API documentation.",
    }


def test_health_reports_realtime_state(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ok"


def test_missing_token_is_401_envelope(client):
    response = client.get("/api/student/appointments")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Access token is required"
    assert body["error"]["code"] == "authentication_error"


def test_garbage_token_is_401(client):
    response = client.get("/api/student/appointments", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_request_validation_is_400_envelope(client, student):
    response = client.post("/api/student/appointments", json={"reason": "missing fields"}, headers=auth_headers(student))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    fields = {d["field"] for d in body["error"]["details"]}
    assert "body.appointee_id" in fields
    assert "body.appointment_time" in fields


def test_unknown_route_is_404_envelope(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json()["success"] is False
