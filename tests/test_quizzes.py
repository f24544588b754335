import pytest

from errors import BadRequest, Forbidden, NotFound
from models import Course, Quiz, QuizAttempt, User
from services import quizzes


def build_questions(count=2, points=1):
    return [
        {
            "text": f"Question {index + 1}",
            "options": [
                {"text": "Right", "is_correct": True},
                {"text": "Wrong", "is_correct": False},
                {"text": "Also wrong", "is_correct": False},
            ],
            "explanation": "Because it is right",
            "points": points,
        }
        for index in range(count)
    ]


@pytest.fixture
def make_quiz(rep, course):
    def _make(count=2, **settings):
        settings.setdefault("title", "Week one check")
        settings.setdefault("is_published", True)
        return quizzes.create_quiz(rep, str(course.id), build_questions(count), **settings)

    return _make


def answers_for(quiz, correct):
    """Answer the first ``correct`` questions right and the rest wrong."""
    return [
        {"question_id": str(question.question_id), "selected_option_index": 0 if index < correct else 1}
        for index, question in enumerate(quiz.questions)
    ]


def test_create_quiz_bumps_course_counter(make_quiz, course):
    quiz = make_quiz()
    assert quiz.total_points == 2
    assert Course.objects.get(id=course.id).quizzes_count == 1


def test_question_without_correct_option_is_rejected(rep, course):
    questions = build_questions(1)
    for option in questions[0]["options"]:
        option["is_correct"] = False
    with pytest.raises(BadRequest, match="must have at least one correct answer"):
        quizzes.create_quiz(rep, str(course.id), questions, title="Broken")


def test_half_right_scores_fifty(make_quiz, student):
    quiz = make_quiz(passing_score=50)

    attempt = quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 1), 30, student)

    assert attempt.score == 50
    assert attempt.is_passed is True
    assert attempt.correct_answers == 1
    assert attempt.attempt_number == 1
    assert (attempt.submitted_at - attempt.started_at).total_seconds() == 30


def test_half_right_fails_higher_passing_score(make_quiz, student):
    quiz = make_quiz(passing_score=60)
    attempt = quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 1), 0, student)
    assert attempt.is_passed is False


def test_max_attempts_enforced(make_quiz, student):
    quiz = make_quiz(max_attempts=1)
    quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 2), 10, student)

    with pytest.raises(BadRequest) as excinfo:
        quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 2), 10, student)
    assert excinfo.value.message == "Maximum attempts (1) reached"


def test_attempt_numbers_are_sequential(make_quiz, student):
    quiz = make_quiz()
    numbers = [quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 1), 5, student).attempt_number for _ in range(3)]
    assert numbers == [1, 2, 3]


def test_statistics_and_user_counters(make_quiz, student, make_user):
    quiz = make_quiz()
    other = make_user("Other")

    assert Quiz.objects.get(id=quiz.id).stats.attempts_count == 0

    quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 2), 5, student)
    quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 0), 5, other)

    stats = Quiz.objects.get(id=quiz.id).stats
    assert (stats.attempts_count, stats.average_score, stats.pass_rate) == (2, 50, 50)

    user = User.objects.get(id=student.id)
    assert (user.quizzes_taken, user.quiz_correct_answers) == (1, 2)


def test_unpublished_quiz_rejects_attempts(make_quiz, student):
    quiz = make_quiz(is_published=False)
    with pytest.raises(BadRequest, match="not available"):
        quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 2), 5, student)


def test_missing_quiz(student):
    with pytest.raises(NotFound):
        quizzes.submit_attempt("64b7f0c2a1b2c3d4e5f60718", [], 0, student)


def test_invalid_answers_are_bad_requests(make_quiz, student):
    quiz = make_quiz()
    with pytest.raises(BadRequest, match="All questions must be answered"):
        quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 2)[:1], 5, student)

    answers = answers_for(quiz, 2)
    answers[1]["selected_option_index"] = 9
    with pytest.raises(BadRequest, match="Invalid option index"):
        quizzes.submit_attempt(str(quiz.id), answers, 5, student)

    assert QuizAttempt.objects.count() == 0


def test_only_creator_or_admin_can_update(make_quiz, make_user, admin):
    quiz = make_quiz()
    other_rep = make_user("Other Rep", role="rep")

    with pytest.raises(Forbidden, match="Not authorized to update this quiz"):
        quizzes.update_quiz(str(quiz.id), other_rep, title="Hijacked")

    updated = quizzes.update_quiz(str(quiz.id), admin, title="Renamed")
    assert updated.title == "Renamed"


def test_delete_quiz_removes_attempts(make_quiz, rep, student, course):
    quiz = make_quiz()
    quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 1), 5, student)

    quizzes.delete_quiz(str(quiz.id), rep)

    assert QuizAttempt.objects.count() == 0
    assert Course.objects.get(id=course.id).quizzes_count == 0


def test_review_blocked_when_disallowed(make_quiz, student, make_user):
    quiz = make_quiz(allow_review=False)
    attempt = quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 1), 5, student)

    with pytest.raises(Forbidden, match="Not authorized to view this attempt"):
        quizzes.attempt_details(str(attempt.id), make_user("Snoop"))
    with pytest.raises(Forbidden, match="Review is not allowed"):
        quizzes.attempt_details(str(attempt.id), student)


def test_review_includes_questions(make_quiz, student):
    quiz = make_quiz()
    attempt = quizzes.submit_attempt(str(quiz.id), answers_for(quiz, 1), 5, student)

    details = quizzes.attempt_details(str(attempt.id), student)

    assert details["answers"][0]["question"]["explanation"] == "Because it is right"
    assert details["answers"][0]["is_correct"] is True


def test_quiz_view_hides_answers_from_students(client, make_quiz, student, rep, headers_for):
    quiz = make_quiz()

    data = client.get(f"/api/v1/quizzes/{quiz.id}", headers=headers_for(student)).json()["data"]
    option = data["questions"][0]["options"][0]
    assert "is_correct" not in option
    assert "explanation" not in data["questions"][0]

    data = client.get(f"/api/v1/quizzes/{quiz.id}", headers=headers_for(rep)).json()["data"]
    assert data["questions"][0]["options"][0]["is_correct"] is True


def test_submit_attempt_endpoint(client, make_quiz, student, headers_for):
    quiz = make_quiz(max_attempts=1)
    body = {"answers": answers_for(quiz, 2), "time_spent": 42}

    response = client.post(f"/api/v1/quizzes/{quiz.id}/attempt", json=body, headers=headers_for(student))
    assert response.status_code == 200
    assert response.json()["data"]["score"] == 100

    response = client.post(f"/api/v1/quizzes/{quiz.id}/attempt", json=body, headers=headers_for(student))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Maximum attempts (1) reached"

    response = client.get("/api/v1/quizzes/attempts/me", headers=headers_for(student))
    assert response.json()["pagination"]["totalItems"] == 1


def test_students_cannot_create_quizzes(client, course, student, headers_for):
    body = {"course": str(course.id), "title": "Nope", "questions": build_questions(2)}
    response = client.post("/api/v1/quizzes/", json=body, headers=headers_for(student))
    assert response.status_code == 403
