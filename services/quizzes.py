import logging
import random
from datetime import timedelta

from mongoengine.errors import NotUniqueError
from mongoengine.queryset.visitor import Q

import scoring
from database import get_or_404, parse_object_id, ref_id
from errors import BadRequest, Conflict, Forbidden, NotFound
from models import AttemptAnswer, Course, Option, Question, Quiz, QuizAttempt, QuizStats, User, utcnow
from responses import course_summary, serialize, to_json, user_summary
from services import courses

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = (
    "title",
    "description",
    "time_limit",
    "passing_score",
    "difficulty",
    "shuffle_questions",
    "shuffle_options",
    "allow_review",
    "max_attempts",
    "is_active",
)


def _build_questions(questions) -> list:
    built = []
    for question in questions:
        options = question.get("options") or []
        if len(options) < 2 or len(options) > 6:
            raise BadRequest(f'Question "{question["text"]}" must have between 2 and 6 options')
        if not any(option.get("is_correct") for option in options):
            raise BadRequest(f'Question "{question["text"]}" must have at least one correct answer')

        embedded = Question(
            text=question["text"],
            options=[Option(text=option["text"], is_correct=bool(option.get("is_correct"))) for option in options],
            explanation=question.get("explanation"),
            points=question.get("points") or 1,
        )
        if question.get("question_id"):
            embedded.question_id = parse_object_id(question["question_id"], "Invalid question id")
        built.append(embedded)
    if not built:
        raise BadRequest("Quiz must have at least one question")
    return built


def can_manage(quiz: Quiz, user) -> bool:
    return user is not None and (user.role == "admin" or ref_id(quiz, "created_by") == user.id)


def serialize_quiz(quiz: Quiz, reveal_answers=False, include_questions=True, shuffle=False) -> dict:
    data = serialize(quiz, expand={"course": course_summary, "created_by": user_summary})
    data["total_points"] = quiz.total_points
    data["question_count"] = len(quiz.questions)

    if not include_questions:
        data.pop("questions", None)
        return data
    if reveal_answers:
        return data

    questions = []
    for question in quiz.questions:
        options = [{"index": index, "text": option.text} for index, option in enumerate(question.options)]
        if shuffle and quiz.shuffle_options:
            random.shuffle(options)
        questions.append({
            "question_id": str(question.question_id),
            "text": question.text,
            "options": options,
            "points": question.points,
        })
    if shuffle and quiz.shuffle_questions:
        random.shuffle(questions)
    data["questions"] = questions
    return data


def create_quiz(user: User, course_id, questions, **settings) -> Quiz:
    course = get_or_404(Course, course_id, "Course not found")
    quiz = Quiz(course=course, created_by=user, questions=_build_questions(questions), **settings)
    quiz.save()
    courses.adjust_counter(course.id, "quizzes_count", 1)
    logger.info("Quiz %s created for course %s", quiz.id, course.code)
    return quiz


def list_quizzes(page, course_id=None, difficulty=None, is_published=None, is_active=None):
    query = Q()
    if course_id:
        query &= Q(course=parse_object_id(course_id, "Invalid course id"))
    if difficulty:
        query &= Q(difficulty=difficulty)
    if is_published is not None:
        query &= Q(is_published=is_published)
    if is_active is not None:
        query &= Q(is_active=is_active)
    queryset = Quiz.objects(query).order_by("-created_at")
    return page.slice(queryset), queryset.count()


def list_course_quizzes(page, course_id, difficulty=None):
    get_or_404(Course, course_id, "Course not found")
    return list_quizzes(page, course_id=course_id, difficulty=difficulty, is_published=True, is_active=True)


def get_quiz(quiz_id) -> Quiz:
    return get_or_404(Quiz, quiz_id, "Quiz not found")


def _owned_quiz(quiz_id, user: User, action: str) -> Quiz:
    quiz = get_quiz(quiz_id)
    if not can_manage(quiz, user):
        raise Forbidden(f"Not authorized to {action} this quiz")
    return quiz


def update_quiz(quiz_id, user: User, questions=None, **settings) -> Quiz:
    quiz = _owned_quiz(quiz_id, user, "update")
    if questions is not None:
        quiz.questions = _build_questions(questions)
    for field in SETTINGS_FIELDS:
        if field in settings:
            setattr(quiz, field, settings[field])
    quiz.save()
    return quiz


def delete_quiz(quiz_id, user: User):
    quiz = _owned_quiz(quiz_id, user, "delete")
    QuizAttempt.objects(quiz=quiz.id).delete()
    quiz.delete()
    courses.adjust_counter(ref_id(quiz, "course"), "quizzes_count", -1)
    logger.info("Quiz %s and its attempts deleted", quiz.id)


def set_published(quiz_id, user: User, is_published: bool) -> Quiz:
    quiz = _owned_quiz(quiz_id, user, "publish/unpublish")
    Quiz.objects(id=quiz.id).update_one(set__is_published=is_published)
    quiz.is_published = is_published
    return quiz


def recompute_statistics(quiz_id) -> QuizStats:
    attempts = list(QuizAttempt.objects(quiz=quiz_id).only("score", "is_passed"))
    result = scoring.quiz_statistics(attempts)
    stats = QuizStats(
        attempts_count=result.attempts_count,
        average_score=result.average_score,
        pass_rate=result.pass_rate,
    )
    Quiz.objects(id=quiz_id).update_one(set__stats=stats)
    return stats


def _next_attempt_number(quiz_id, user_id) -> int:
    last = QuizAttempt.objects(quiz=quiz_id, user=user_id).order_by("-attempt_number").only("attempt_number").first()
    return (last.attempt_number if last else 0) + 1


def submit_attempt(quiz_id, answers, time_spent: int, user: User) -> QuizAttempt:
    quiz = get_quiz(quiz_id)
    if not quiz.is_published or not quiz.is_active:
        raise BadRequest("Quiz is not available for attempts")

    if quiz.max_attempts:
        taken = QuizAttempt.objects(quiz=quiz.id, user=user.id).count()
        if taken >= quiz.max_attempts:
            raise BadRequest(f"Maximum attempts ({quiz.max_attempts}) reached")

    try:
        result = scoring.grade(quiz.questions, answers, quiz.passing_score)
    except scoring.InvalidAnswer as exc:
        raise BadRequest(str(exc))

    now = utcnow()
    attempt = QuizAttempt(
        quiz=quiz,
        user=user,
        answers=[
            AttemptAnswer(
                question_id=answer.question_id,
                selected_option_index=answer.selected_option_index,
                is_correct=answer.is_correct,
                points_earned=answer.points_earned,
            )
            for answer in result.answers
        ],
        score=result.score,
        points_earned=result.points_earned,
        total_points=result.total_points,
        correct_answers=result.correct_answers,
        total_questions=result.total_questions,
        is_passed=result.is_passed,
        time_spent=time_spent,
        started_at=now - timedelta(seconds=time_spent),
        submitted_at=now,
        attempt_number=_next_attempt_number(quiz.id, user.id),
    )
    try:
        attempt.save()
    except NotUniqueError:
        # a concurrent submission took this attempt number
        raise Conflict("Attempt already being recorded, please retry")

    recompute_statistics(quiz.id)
    User.objects(id=user.id).update_one(
        inc__quizzes_taken=1, inc__quiz_correct_answers=result.correct_answers
    )
    logger.info(
        "User %s scored %s on quiz %s (attempt %s)", user.id, result.score, quiz.id, attempt.attempt_number
    )
    return attempt


def serialize_attempt(attempt: QuizAttempt) -> dict:
    return serialize(attempt, expand={"quiz": _quiz_title})


def _quiz_title(quiz):
    if not isinstance(quiz, Quiz):
        return None
    return {"id": str(quiz.id), "title": quiz.title}


def user_attempts(quiz_id, user: User):
    quiz = get_quiz(quiz_id)
    return list(QuizAttempt.objects(quiz=quiz.id, user=user.id).order_by("-attempt_number"))


def all_user_attempts(page, user: User):
    queryset = QuizAttempt.objects(user=user.id).order_by("-created_at")
    return page.slice(queryset), queryset.count()


def attempt_details(attempt_id, user: User) -> dict:
    attempt = get_or_404(QuizAttempt, attempt_id, "Attempt not found")
    if ref_id(attempt, "user") != user.id:
        raise Forbidden("Not authorized to view this attempt")

    quiz = Quiz.objects(id=ref_id(attempt, "quiz")).first()
    if quiz is None:
        raise NotFound("Quiz not found")
    if not quiz.allow_review:
        raise Forbidden("Review is not allowed for this quiz")

    questions = {str(question.question_id): question for question in quiz.questions}
    data = serialize_attempt(attempt)
    for answer, answer_data in zip(attempt.answers, data["answers"]):
        question = questions.get(str(answer.question_id))
        if question is not None:
            answer_data["question"] = {
                "text": question.text,
                "options": to_json(question.options),
                "explanation": question.explanation,
            }
    return data
