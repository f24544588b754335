from typing import Optional

from fastapi import APIRouter, Depends, status

from auth import get_current_user, require_rep
from models import User
from responses import Page, page_params, pagination_metadata, success_response
from schemas import OfficialNoteCategory, OfficialNoteCreate, OfficialNoteUpdate
from services.official_notes import official_notes

router = APIRouter()

@router.get("/")
async def list_official_notes(
    page: Page = Depends(page_params),
    course: Optional[str] = None,
    category: Optional[OfficialNoteCategory] = None,
    search: Optional[str] = None,
):
    items, total = official_notes.list(page, course_id=course, search=search, category=category)
    return success_response(
        "Official notes retrieved successfully",
        [official_notes.serialize(item) for item in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_official_note(payload: OfficialNoteCreate, current_user: User = Depends(require_rep)):
    fields = payload.model_dump()
    resource = official_notes.create(
        current_user,
        fields.pop("course"),
        fields.pop("file_name"),
        fields.pop("file_type"),
        fields.pop("file_size"),
        fields.pop("file_key"),
        **fields
    )
    return success_response("Official note created successfully", official_notes.serialize(resource))

@router.get("/course/{course_id}")
async def course_official_notes(
    course_id: str,
    page: Page = Depends(page_params),
    category: Optional[OfficialNoteCategory] = None,
):
    items, total = official_notes.list_for_course(page, course_id, category=category)
    return success_response(
        "Official notes retrieved successfully",
        [official_notes.serialize(item) for item in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.get("/{resource_id}")
async def get_official_note(resource_id: str):
    resource = official_notes.get(resource_id)
    return success_response("Official note retrieved successfully", official_notes.serialize(resource))

@router.get("/{resource_id}/download")
async def download_official_note(resource_id: str, current_user: User = Depends(get_current_user)):
    return success_response("Download URL generated successfully", official_notes.download_url(resource_id))

@router.put("/{resource_id}")
async def update_official_note(resource_id: str, payload: OfficialNoteUpdate, current_user: User = Depends(require_rep)):
    resource = official_notes.update(resource_id, **payload.model_dump(exclude_unset=True))
    return success_response("Official note updated successfully", official_notes.serialize(resource))

@router.delete("/{resource_id}")
async def delete_official_note(resource_id: str, current_user: User = Depends(require_rep)):
    official_notes.delete(resource_id)
    return success_response("Official note deleted successfully")
