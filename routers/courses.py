from typing import Optional

from fastapi import APIRouter, Depends, status

from auth import require_admin
from models import User
from responses import Page, page_params, pagination_metadata, success_response
from schemas import AssignReps, CourseCreate, CourseUpdate, Semester, StatusUpdate
from services import courses
from services.courses import serialize_course

router = APIRouter()

@router.get("/")
async def list_courses(
    page: Page = Depends(page_params),
    level: Optional[str] = None,
    department: Optional[str] = None,
    semester: Optional[Semester] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
):
    items, total = courses.list_courses(page, level, department, semester, is_active, search)
    return success_response(
        "Courses retrieved successfully",
        [serialize_course(course) for course in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_course(payload: CourseCreate, current_user: User = Depends(require_admin)):
    fields = payload.model_dump()
    course = courses.create_course(current_user, fields.pop("level"), fields.pop("code"), **fields)
    return success_response("Course created successfully", serialize_course(course))

@router.get("/code/{code}")
async def get_course_by_code(code: str):
    return success_response("Course retrieved successfully", serialize_course(courses.get_course_by_code(code)))

@router.get("/level/{level_id}")
async def courses_for_level(level_id: str, is_active: Optional[bool] = None):
    items = courses.courses_for_level(level_id, is_active)
    return success_response("Courses retrieved successfully", [serialize_course(course) for course in items])

@router.get("/{course_id}")
async def get_course(course_id: str):
    return success_response("Course retrieved successfully", serialize_course(courses.get_course(course_id)))

@router.put("/{course_id}")
async def update_course(course_id: str, payload: CourseUpdate, current_user: User = Depends(require_admin)):
    course = courses.update_course(course_id, **payload.model_dump(exclude_unset=True))
    return success_response("Course updated successfully", serialize_course(course))

@router.delete("/{course_id}")
async def delete_course(course_id: str, current_user: User = Depends(require_admin)):
    courses.delete_course(course_id)
    return success_response("Course deleted successfully")

@router.patch("/{course_id}/status")
async def set_course_status(course_id: str, payload: StatusUpdate, current_user: User = Depends(require_admin)):
    course = courses.set_status(course_id, payload.is_active)
    return success_response("Course status updated successfully", serialize_course(course))

@router.post("/{course_id}/assign-reps")
async def assign_reps(course_id: str, payload: AssignReps, current_user: User = Depends(require_admin)):
    course = courses.assign_reps(course_id, payload.rep_ids)
    return success_response("Reps assigned successfully", serialize_course(course))
