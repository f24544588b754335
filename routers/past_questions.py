from typing import Optional

from fastapi import APIRouter, Depends, status

from auth import get_current_user, require_rep
from models import User
from responses import Page, page_params, pagination_metadata, success_response
from schemas import PastQuestionCreate, PastQuestionType, PastQuestionUpdate, Semester, VerifyUpdate
from services.past_questions import past_questions

router = APIRouter()

def _listing(message, items, total, page):
    return success_response(
        message,
        [past_questions.serialize(item) for item in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.get("/")
async def list_past_questions(
    page: Page = Depends(page_params),
    course: Optional[str] = None,
    year: Optional[int] = None,
    semester: Optional[Semester] = None,
    type: Optional[PastQuestionType] = None,
    is_verified: Optional[bool] = None,
    search: Optional[str] = None,
):
    items, total = past_questions.list(
        page, course_id=course, search=search, year=year, semester=semester, type=type, is_verified=is_verified
    )
    return _listing("Past questions retrieved successfully", items, total, page)

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_past_question(payload: PastQuestionCreate, current_user: User = Depends(require_rep)):
    fields = payload.model_dump()
    resource = past_questions.create(
        current_user,
        fields.pop("course"),
        fields.pop("file_name"),
        fields.pop("file_type"),
        fields.pop("file_size"),
        fields.pop("file_key"),
        **fields
    )
    return success_response("Past question created successfully", past_questions.serialize(resource))

@router.get("/course/{course_id}")
async def course_past_questions(
    course_id: str,
    page: Page = Depends(page_params),
    year: Optional[int] = None,
    semester: Optional[Semester] = None,
    type: Optional[PastQuestionType] = None,
):
    items, total = past_questions.list_for_course(page, course_id, year=year, semester=semester, type=type)
    return _listing("Past questions retrieved successfully", items, total, page)

@router.get("/{resource_id}")
async def get_past_question(resource_id: str):
    resource = past_questions.get(resource_id)
    return success_response("Past question retrieved successfully", past_questions.serialize(resource))

@router.get("/{resource_id}/download")
async def download_past_question(resource_id: str, current_user: User = Depends(get_current_user)):
    return success_response("Download URL generated successfully", past_questions.download_url(resource_id))

@router.put("/{resource_id}")
async def update_past_question(resource_id: str, payload: PastQuestionUpdate, current_user: User = Depends(require_rep)):
    resource = past_questions.update(resource_id, **payload.model_dump(exclude_unset=True))
    return success_response("Past question updated successfully", past_questions.serialize(resource))

@router.delete("/{resource_id}")
async def delete_past_question(resource_id: str, current_user: User = Depends(require_rep)):
    past_questions.delete(resource_id)
    return success_response("Past question deleted successfully")

@router.patch("/{resource_id}/verify")
async def verify_past_question(resource_id: str, payload: VerifyUpdate, current_user: User = Depends(require_rep)):
    resource = past_questions.set_verified(resource_id, payload.is_verified)
    return success_response("Past question verification updated", past_questions.serialize(resource))
