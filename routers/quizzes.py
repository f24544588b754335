from typing import Optional

from fastapi import APIRouter, Depends, status

from auth import get_current_user, get_optional_user, require_rep
from models import User
from responses import Page, page_params, pagination_metadata, success_response
from schemas import AttemptSubmit, Difficulty, PublishUpdate, QuizCreate, QuizUpdate
from services import quizzes
from services.quizzes import serialize_attempt, serialize_quiz

router = APIRouter()

@router.get("/")
async def list_quizzes(
    page: Page = Depends(page_params),
    course: Optional[str] = None,
    difficulty: Optional[Difficulty] = None,
    is_published: Optional[bool] = None,
    is_active: Optional[bool] = None,
):
    items, total = quizzes.list_quizzes(page, course, difficulty, is_published, is_active)
    return success_response(
        "Quizzes retrieved successfully",
        [serialize_quiz(quiz) for quiz in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_quiz(payload: QuizCreate, current_user: User = Depends(require_rep)):
    fields = payload.model_dump()
    quiz = quizzes.create_quiz(current_user, fields.pop("course"), fields.pop("questions"), **fields)
    return success_response("Quiz created successfully", serialize_quiz(quiz, reveal_answers=True))

@router.get("/course/{course_id}")
async def course_quizzes(course_id: str, page: Page = Depends(page_params), difficulty: Optional[Difficulty] = None):
    items, total = quizzes.list_course_quizzes(page, course_id, difficulty)
    return success_response(
        "Quizzes retrieved successfully",
        [serialize_quiz(quiz, include_questions=False) for quiz in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.get("/attempts/me")
async def my_attempts(page: Page = Depends(page_params), current_user: User = Depends(get_current_user)):
    items, total = quizzes.all_user_attempts(page, current_user)
    return success_response(
        "Attempts retrieved successfully",
        [serialize_attempt(attempt) for attempt in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.get("/attempts/{attempt_id}")
async def attempt_details(attempt_id: str, current_user: User = Depends(get_current_user)):
    return success_response("Attempt details retrieved successfully", quizzes.attempt_details(attempt_id, current_user))

@router.get("/{quiz_id}")
async def get_quiz(quiz_id: str, current_user: Optional[User] = Depends(get_optional_user)):
    quiz = quizzes.get_quiz(quiz_id)
    if quizzes.can_manage(quiz, current_user):
        data = serialize_quiz(quiz, reveal_answers=True)
    else:
        data = serialize_quiz(quiz, shuffle=True)
    return success_response("Quiz retrieved successfully", data)

@router.put("/{quiz_id}")
async def update_quiz(quiz_id: str, payload: QuizUpdate, current_user: User = Depends(require_rep)):
    quiz = quizzes.update_quiz(quiz_id, current_user, **payload.model_dump(exclude_unset=True))
    return success_response("Quiz updated successfully", serialize_quiz(quiz, reveal_answers=True))

@router.delete("/{quiz_id}")
async def delete_quiz(quiz_id: str, current_user: User = Depends(require_rep)):
    quizzes.delete_quiz(quiz_id, current_user)
    return success_response("Quiz deleted successfully")

@router.patch("/{quiz_id}/publish")
async def publish_quiz(quiz_id: str, payload: PublishUpdate, current_user: User = Depends(require_rep)):
    quiz = quizzes.set_published(quiz_id, current_user, payload.is_published)
    message = "Quiz published successfully" if payload.is_published else "Quiz unpublished successfully"
    return success_response(message, serialize_quiz(quiz, include_questions=False))

@router.post("/{quiz_id}/attempt")
async def submit_attempt(quiz_id: str, payload: AttemptSubmit, current_user: User = Depends(get_current_user)):
    answers = [answer.model_dump() for answer in payload.answers]
    attempt = quizzes.submit_attempt(quiz_id, answers, payload.time_spent, current_user)
    return success_response("Quiz submitted successfully", serialize_attempt(attempt))

@router.get("/{quiz_id}/attempts")
async def quiz_attempts(quiz_id: str, current_user: User = Depends(get_current_user)):
    items = quizzes.user_attempts(quiz_id, current_user)
    return success_response("Attempts retrieved successfully", [serialize_attempt(attempt) for attempt in items])
