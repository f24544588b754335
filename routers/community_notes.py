from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from auth import get_current_user, require_rep
from models import User
from responses import Page, page_params, pagination_metadata, success_response
from schemas import CommunityNoteCreate, CommunityNoteUpdate, PinUpdate
from services import community_notes
from services.community_notes import serialize_note

router = APIRouter()

NoteSort = Literal["score", "popular", "recent"]

def _listing(items, total, page):
    return success_response(
        "Community notes retrieved successfully",
        [serialize_note(note) for note in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.get("/")
async def list_notes(
    page: Page = Depends(page_params),
    course: Optional[str] = None,
    author: Optional[str] = None,
    tags: Optional[List[str]] = Query(None),
    search: Optional[str] = None,
    sort_by: NoteSort = "score",
):
    items, total = community_notes.list_notes(page, course, author, tags, search, sort_by)
    return _listing(items, total, page)

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_note(payload: CommunityNoteCreate, current_user: User = Depends(get_current_user)):
    note = community_notes.create_note(current_user, payload.course, payload.title, payload.content, payload.tags)
    return success_response("Community note created successfully", serialize_note(note))

@router.get("/me")
async def my_notes(page: Page = Depends(page_params), current_user: User = Depends(get_current_user)):
    items, total = community_notes.list_user_notes(page, current_user.id, include_inactive=True)
    return _listing(items, total, page)

@router.get("/course/{course_id}")
async def course_notes(
    course_id: str,
    page: Page = Depends(page_params),
    tags: Optional[List[str]] = Query(None),
    sort_by: NoteSort = "score",
):
    items, total = community_notes.list_course_notes(page, course_id, tags, sort_by)
    return _listing(items, total, page)

@router.get("/user/{user_id}")
async def user_notes(user_id: str, page: Page = Depends(page_params)):
    items, total = community_notes.list_user_notes(page, user_id)
    return _listing(items, total, page)

@router.get("/{note_id}")
async def get_note(note_id: str):
    note = community_notes.get_note(note_id, increment_view=True)
    return success_response("Community note retrieved successfully", serialize_note(note))

@router.put("/{note_id}")
async def update_note(note_id: str, payload: CommunityNoteUpdate, current_user: User = Depends(get_current_user)):
    note = community_notes.update_note(note_id, current_user, **payload.model_dump(exclude_unset=True))
    return success_response("Community note updated successfully", serialize_note(note))

@router.delete("/{note_id}")
async def delete_note(note_id: str, current_user: User = Depends(get_current_user)):
    community_notes.delete_note(note_id, current_user)
    return success_response("Community note deleted successfully")

@router.patch("/{note_id}/pin")
async def pin_note(note_id: str, payload: PinUpdate, current_user: User = Depends(require_rep)):
    note = community_notes.set_pinned(note_id, payload.is_pinned)
    message = "Note pinned successfully" if payload.is_pinned else "Note unpinned successfully"
    return success_response(message, serialize_note(note))

@router.post("/{note_id}/report")
async def report_note(note_id: str, current_user: User = Depends(get_current_user)):
    note = community_notes.report_note(note_id, current_user)
    return success_response(
        "Note reported successfully",
        {"report_count": note.report_count, "is_active": note.is_active},
    )
