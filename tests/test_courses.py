import pytest

import storage
from errors import BadRequest, Conflict, Forbidden
from models import Course, PastQuestion
from services import courses, levels
from services.official_notes import official_notes
from services.past_questions import past_questions


@pytest.fixture
def signed_urls(monkeypatch):
    monkeypatch.setattr(storage, "issue_upload_url", lambda key, content_type, ttl: f"https://upload.example.com/{key}")
    monkeypatch.setattr(storage, "issue_download_url", lambda key, ttl: f"https://download.example.com/{key}")


def create_past_question(user, course, file_key="past-questions/1-abc-exam.pdf", **fields):
    fields.setdefault("title", "2022 final exam")
    fields.setdefault("year", 2022)
    fields.setdefault("semester", "First")
    fields.setdefault("type", "past-exam")
    return past_questions.create(user, str(course.id), "exam.pdf", "application/pdf", 2048, file_key, **fields)


def test_level_codes_are_unique_and_uppercased(admin):
    level = levels.create_level(admin, "200 Level", "l200", 2)
    assert level.code == "L200"
    with pytest.raises(Conflict):
        levels.create_level(admin, "Second year", "L200", 3)


def test_level_with_courses_cannot_be_deleted(level, course):
    with pytest.raises(BadRequest, match="Cannot delete level with 1 associated courses"):
        levels.delete_level(str(level.id))


def test_course_code_conflict(admin, level, course):
    with pytest.raises(Conflict, match="Course with this code already exists"):
        courses.create_course(admin, str(level.id), "CSC101", title="Dup", department="CS", semester="First")


def test_course_with_resources_cannot_be_deleted(course, rep):
    create_past_question(rep, course)
    with pytest.raises(BadRequest, match="Cannot delete course with associated resources"):
        courses.delete_course(str(course.id))


def test_assign_reps_rejects_students(course, rep, student):
    updated = courses.assign_reps(str(course.id), [str(rep.id)])
    assert [r.id for r in updated.assigned_reps] == [rep.id]
    with pytest.raises(BadRequest, match="One or more invalid rep IDs"):
        courses.assign_reps(str(course.id), [str(student.id)])


def test_past_question_counters(course, rep):
    past_question = create_past_question(rep, course)
    assert past_question.file_url == "https://files.example.com/past-questions/1-abc-exam.pdf"
    assert Course.objects.get(id=course.id).past_questions_count == 1

    past_questions.delete(str(past_question.id))
    assert Course.objects.get(id=course.id).past_questions_count == 0


def test_past_question_metadata_validation(course, rep):
    with pytest.raises(BadRequest, match="File type not allowed"):
        past_questions.create(rep, str(course.id), "exam.exe", "application/octet-stream", 10, "k", title="t", year=2022, semester="First", type="past-exam")
    with pytest.raises(BadRequest, match="File size exceeds maximum limit of 50MB"):
        past_questions.create(rep, str(course.id), "exam.pdf", "application/pdf", 60 * 1024 * 1024, "k", title="t", year=2022, semester="First", type="past-exam")


def test_duplicate_file_key_conflicts(course, rep):
    create_past_question(rep, course)
    with pytest.raises(Conflict):
        create_past_question(rep, course)
    assert Course.objects.get(id=course.id).past_questions_count == 1


def test_moving_resource_moves_counters(course, level, admin, rep):
    other = courses.create_course(admin, str(level.id), "mth101", title="Calculus", department="Maths", semester="First")
    past_question = create_past_question(rep, course)

    past_questions.update(str(past_question.id), course=str(other.id), title="Moved")

    assert Course.objects.get(id=course.id).past_questions_count == 0
    assert Course.objects.get(id=other.id).past_questions_count == 1


def test_download_counts_and_inactive_is_forbidden(course, rep, signed_urls):
    past_question = create_past_question(rep, course)

    result = past_questions.download_url(str(past_question.id))
    assert result["download_url"] == "https://download.example.com/past-questions/1-abc-exam.pdf"
    assert result["file_name"] == "exam.pdf"
    assert PastQuestion.objects.get(id=past_question.id).download_count == 1

    PastQuestion.objects(id=past_question.id).update_one(set__is_active=False)
    with pytest.raises(Forbidden, match="This past question is not available"):
        past_questions.download_url(str(past_question.id))


def test_official_note_filters(course, rep, page):
    official_notes.create(rep, str(course.id), "w1.pdf", "application/pdf", 10, "official-notes/w1.pdf", title="Week 1", category="Slides")
    official_notes.create(rep, str(course.id), "w2.pdf", "application/pdf", 10, "official-notes/w2.pdf", title="Week 2")

    items, total = official_notes.list(page, category="Slides")
    assert total == 1
    assert items[0].title == "Week 1"
    assert Course.objects.get(id=course.id).official_notes_count == 2


def test_course_endpoints(client, level, admin, student, headers_for):
    body = {"title": "Data Structures", "code": "csc201", "level": str(level.id), "department": "CS", "semester": "Second"}

    response = client.post("/api/v1/courses/", json=body, headers=headers_for(student))
    assert response.status_code == 403

    response = client.post("/api/v1/courses/", json=body, headers=headers_for(admin))
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["code"] == "CSC201"
    assert data["level"]["code"] == "L100"

    response = client.get("/api/v1/courses/code/csc201")
    assert response.json()["data"]["title"] == "Data Structures"

    response = client.get("/api/v1/courses/", params={"limit": 1})
    assert response.json()["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "totalItems": 1,
        "itemsPerPage": 1,
        "hasNextPage": False,
        "hasPrevPage": False,
    }


def test_upload_endpoints(client, rep, student, course, headers_for, signed_urls):
    body = {"file_name": "Exam Paper.pdf", "file_type": "application/pdf", "file_size": 1024, "folder": "past-questions"}

    assert client.post("/api/v1/upload/signed-url", json=body, headers=headers_for(student)).status_code == 403

    response = client.post("/api/v1/upload/signed-url", json=body, headers=headers_for(rep))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["file_key"].startswith("past-questions/")
    assert data["file_key"].endswith("-exam-paper.pdf")
    assert data["upload_url"] == f"https://upload.example.com/{data['file_key']}"
    assert data["expires_in"] == 3600

    pq_body = {
        "course": str(course.id),
        "title": "2021 exam",
        "file_name": "Exam Paper.pdf",
        "file_type": "application/pdf",
        "file_size": 1024,
        "file_key": data["file_key"],
        "year": 2021,
        "semester": "Second",
        "type": "past-exam",
    }
    response = client.post("/api/v1/past-questions/", json=pq_body, headers=headers_for(rep))
    assert response.status_code == 201
    resource_id = response.json()["data"]["id"]

    assert client.get(f"/api/v1/past-questions/{resource_id}/download").status_code == 401
    response = client.get(f"/api/v1/past-questions/{resource_id}/download", headers=headers_for(student))
    assert response.json()["data"]["expires_in"] == 86400
