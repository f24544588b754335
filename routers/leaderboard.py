from typing import Optional

from fastapi import APIRouter, Depends, Query

from auth import get_current_user
from models import User
from responses import Page, page_params, pagination_metadata, success_response
from schemas import Role
from services import leaderboard

router = APIRouter()

@router.get("/")
async def global_leaderboard(page: Page = Depends(page_params), role: Optional[Role] = None):
    entries, total = leaderboard.global_leaderboard(page, role)
    return success_response(
        "Leaderboard retrieved successfully",
        entries,
        pagination_metadata(page.page, page.limit, total),
    )

@router.get("/top-contributors")
async def top_contributors(limit: int = Query(10, ge=1, le=100)):
    return success_response("Top contributors retrieved successfully", leaderboard.top_contributors(limit))

@router.get("/quiz-champions")
async def quiz_champions(limit: int = Query(10, ge=1, le=100)):
    return success_response("Quiz champions retrieved successfully", leaderboard.quiz_champions(limit))

@router.get("/stats")
async def leaderboard_stats():
    return success_response("Leaderboard statistics retrieved successfully", leaderboard.leaderboard_stats())

@router.get("/me")
async def my_position(current_user: User = Depends(get_current_user)):
    return success_response("User position retrieved successfully", leaderboard.user_position(current_user))

@router.get("/nearby")
async def users_nearby(radius: int = Query(5, ge=1, le=20), current_user: User = Depends(get_current_user)):
    return success_response("Nearby users retrieved successfully", leaderboard.users_nearby(current_user, radius))
