from typing import Literal, Optional

from fastapi import APIRouter, Depends

from responses import Page, page_params, pagination_metadata, success_response
from schemas import PastQuestionType, Role, Semester
from services import search

router = APIRouter()

def _results(message, items, total, page):
    return success_response(message, items, pagination_metadata(page.page, page.limit, total))

@router.get("/")
async def global_search(q: str = "", page: Page = Depends(page_params)):
    items, total = search.global_search(page, q)
    return _results("Search results retrieved successfully", items, total, page)

@router.get("/courses")
async def search_courses(
    q: str = "",
    page: Page = Depends(page_params),
    level: Optional[str] = None,
    department: Optional[str] = None,
    semester: Optional[Semester] = None,
):
    items, total = search.search_courses(page, q, level, department, semester)
    return _results("Courses retrieved successfully", items, total, page)

@router.get("/community-notes")
async def search_community_notes(q: str = "", page: Page = Depends(page_params), course: Optional[str] = None):
    items, total = search.search_community_notes(page, q, course)
    return _results("Community notes retrieved successfully", items, total, page)

@router.get("/past-questions")
async def search_past_questions(
    q: str = "",
    page: Page = Depends(page_params),
    course: Optional[str] = None,
    year: Optional[int] = None,
    semester: Optional[Semester] = None,
    type: Optional[PastQuestionType] = None,
):
    items, total = search.search_past_questions(page, q, course, year, semester, type)
    return _results("Past questions retrieved successfully", items, total, page)

@router.get("/users")
async def search_users(
    q: str = "",
    page: Page = Depends(page_params),
    role: Optional[Role] = None,
):
    items, total = search.search_users(page, q, role)
    return _results("Users retrieved successfully", items, total, page)

@router.get("/suggestions")
async def suggestions(q: str = "", type: Literal["all", "courses", "notes"] = "all"):
    return success_response("Suggestions retrieved successfully", search.suggestions(q, type))

@router.get("/trending")
async def trending():
    return success_response("Trending searches retrieved successfully", search.trending())
