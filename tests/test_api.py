from models import User


def test_status_endpoints(client):
    assert client.get("/api/status").json()["status"] == "online"
    assert client.get("/api/v1/").json()["success"] is True


def test_not_found_envelope(client):
    response = client.get("/api/v1/courses/64b7f0c2a1b2c3d4e5f60718")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Course not found"
    assert "stack" in body


def test_pagination_bounds(client):
    assert client.get("/api/v1/courses/", params={"limit": 101}).status_code == 400
    assert client.get("/api/v1/courses/", params={"page": 0}).status_code == 400

    response = client.get("/api/v1/courses/", params={"limit": 100})
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_validation_errors_are_bad_requests(client, student, headers_for):
    response = client.post("/api/v1/community-notes/", json={"title": "x"}, headers=headers_for(student))
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_levels_crud(client, admin, headers_for):
    headers = headers_for(admin)
    response = client.post("/api/v1/levels/", json={"name": "300 Level", "code": "l300", "order": 3}, headers=headers)
    assert response.status_code == 201
    level_id = response.json()["data"]["id"]

    response = client.post("/api/v1/levels/", json={"name": "Third", "code": "L300", "order": 4}, headers=headers)
    assert response.status_code == 409

    response = client.patch(f"/api/v1/levels/{level_id}/status", json={"is_active": False}, headers=headers)
    assert response.json()["data"]["is_active"] is False

    response = client.get("/api/v1/levels/", params={"is_active": True})
    assert response.json()["data"] == []

    assert client.delete(f"/api/v1/levels/{level_id}", headers=headers).status_code == 200


def test_admin_user_management(client, admin, student, course, headers_for):
    headers = headers_for(admin)

    assert client.get("/api/v1/users/", headers=headers_for(student)).status_code == 403

    response = client.get("/api/v1/users/", params={"role": "student"}, headers=headers)
    assert [user["id"] for user in response.json()["data"]] == [str(student.id)]

    response = client.post(
        f"/api/v1/users/{student.id}/assign-courses", json={"course_ids": [str(course.id)]}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "User must be a rep or admin"

    response = client.patch(f"/api/v1/users/{student.id}/role", json={"role": "rep"}, headers=headers)
    assert response.json()["data"]["role"] == "rep"

    response = client.post(
        f"/api/v1/users/{student.id}/assign-courses", json={"course_ids": [str(course.id)]}, headers=headers
    )
    assert response.json()["data"]["assigned_courses"] == [str(course.id)]

    response = client.patch(f"/api/v1/users/{student.id}/deactivate", headers=headers)
    assert response.json()["data"]["is_active"] is False
    assert client.get("/api/v1/auth/me", headers=headers_for(student)).status_code == 403


def test_profile_update(client, student, headers_for):
    response = client.put("/api/v1/users/profile", json={"bio": "Loves graphs"}, headers=headers_for(student))
    assert response.json()["data"]["bio"] == "Loves graphs"
    assert User.objects.get(id=student.id).name == "Ada Student"
