from typing import Optional

from fastapi import APIRouter, Depends

from auth import get_current_user, require_admin
from models import User
from responses import Page, page_params, pagination_metadata, serialize_user, success_response
from schemas import AssignCourses, ProfileUpdate, Role, RoleUpdate
from services import users
from services.community_notes import serialize_note

router = APIRouter()

@router.get("/")
async def list_users(
    page: Page = Depends(page_params),
    role: Optional[Role] = None,
    is_verified: Optional[bool] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    current_user: User = Depends(require_admin),
):
    items, total = users.list_users(page, role, is_verified, is_active, search)
    return success_response(
        "Users retrieved successfully",
        [serialize_user(user) for user in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.put("/profile")
async def update_profile(payload: ProfileUpdate, current_user: User = Depends(get_current_user)):
    user = users.update_profile(current_user, **payload.model_dump(exclude_unset=True))
    return success_response("Profile updated successfully", serialize_user(user))

@router.get("/saved-notes")
async def saved_notes(page: Page = Depends(page_params), current_user: User = Depends(get_current_user)):
    items, total = users.saved_notes(page, current_user)
    return success_response(
        "Saved notes retrieved successfully",
        [serialize_note(note) for note in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.post("/notes/{note_id}/save")
async def save_note(note_id: str, current_user: User = Depends(get_current_user)):
    users.save_note(current_user, note_id)
    return success_response("Note saved successfully")

@router.delete("/notes/{note_id}/save")
async def unsave_note(note_id: str, current_user: User = Depends(get_current_user)):
    users.unsave_note(current_user, note_id)
    return success_response("Note removed from saved list")

@router.post("/update-all-reputations")
async def update_all_reputations(current_user: User = Depends(require_admin)):
    count = users.update_all_reputations()
    return success_response("Reputation recomputed for all users", {"updated": count})

@router.get("/{user_id}")
async def get_user(user_id: str, current_user: User = Depends(get_current_user)):
    return success_response("User retrieved successfully", serialize_user(users.get_user(user_id)))

@router.get("/{user_id}/stats")
async def user_stats(user_id: str, current_user: User = Depends(get_current_user)):
    return success_response("User stats retrieved successfully", users.user_stats(user_id))

@router.patch("/{user_id}/role")
async def update_role(user_id: str, payload: RoleUpdate, current_user: User = Depends(require_admin)):
    user = users.set_role(user_id, payload.role)
    return success_response("User role updated successfully", serialize_user(user))

@router.patch("/{user_id}/deactivate")
async def deactivate(user_id: str, current_user: User = Depends(require_admin)):
    user = users.set_active(user_id, False)
    return success_response("User deactivated successfully", serialize_user(user))

@router.patch("/{user_id}/activate")
async def activate(user_id: str, current_user: User = Depends(require_admin)):
    user = users.set_active(user_id, True)
    return success_response("User activated successfully", serialize_user(user))

@router.post("/{user_id}/assign-courses")
async def assign_courses(user_id: str, payload: AssignCourses, current_user: User = Depends(require_admin)):
    user = users.assign_courses(user_id, payload.course_ids)
    return success_response("Courses assigned successfully", serialize_user(user))

@router.post("/{user_id}/update-reputation")
async def update_reputation(user_id: str, current_user: User = Depends(require_admin)):
    user = users.update_reputation(user_id)
    return success_response(
        "Reputation updated successfully",
        {"id": str(user.id), "reputation_score": user.reputation_score},
    )
