from fastapi import APIRouter, Depends, status

from auth import get_current_user
from models import User
from responses import Page, page_params, pagination_metadata, success_response
from schemas import CommentCreate
from services import comments
from services.comments import serialize_comment

router = APIRouter()

@router.get("/note/{note_id}")
async def list_comments(note_id: str, page: Page = Depends(page_params)):
    items, total = comments.list_comments(page, note_id)
    return success_response(
        "Comments retrieved successfully",
        [serialize_comment(comment) for comment in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.post("/note/{note_id}", status_code=status.HTTP_201_CREATED)
async def create_comment(note_id: str, payload: CommentCreate, current_user: User = Depends(get_current_user)):
    comment = comments.create_comment(current_user, note_id, payload.content)
    return success_response("Comment added successfully", serialize_comment(comment))

@router.put("/{comment_id}")
async def update_comment(comment_id: str, payload: CommentCreate, current_user: User = Depends(get_current_user)):
    comment = comments.update_comment(comment_id, current_user, payload.content)
    return success_response("Comment updated successfully", serialize_comment(comment))

@router.delete("/{comment_id}")
async def delete_comment(comment_id: str, current_user: User = Depends(get_current_user)):
    comments.delete_comment(comment_id, current_user)
    return success_response("Comment deleted successfully")
