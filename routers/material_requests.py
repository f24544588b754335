from typing import Literal, Optional

from fastapi import APIRouter, Depends, status

from auth import get_current_user, require_rep
from models import User
from responses import Page, page_params, pagination_metadata, success_response
from schemas import (
    FulfillRequest,
    MaterialRequestCreate,
    MaterialRequestUpdate,
    RejectRequest,
    RequestType,
    RequestVote,
)
from services import material_requests
from services.material_requests import serialize_request

router = APIRouter()

RequestStatus = Literal["pending", "in-progress", "fulfilled", "rejected"]
RequestSort = Literal["priority", "recent", "oldest"]

def _listing(items, total, page):
    return success_response(
        "Requests retrieved successfully",
        [serialize_request(request) for request in items],
        pagination_metadata(page.page, page.limit, total),
    )

@router.get("/")
async def list_requests(
    page: Page = Depends(page_params),
    course: Optional[str] = None,
    request_type: Optional[RequestType] = None,
    status: Optional[RequestStatus] = None,
    sort_by: RequestSort = "priority",
):
    items, total = material_requests.list_requests(page, course, request_type, status, sort_by)
    return _listing(items, total, page)

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_request(payload: MaterialRequestCreate, current_user: User = Depends(get_current_user)):
    fields = payload.model_dump()
    request = material_requests.create_request(
        current_user,
        fields["course"],
        fields["request_type"],
        fields["title"],
        fields["description"],
        fields["specific_details"],
    )
    return success_response("Request created successfully", serialize_request(request))

@router.get("/stats")
async def request_stats(course: Optional[str] = None):
    return success_response("Request statistics retrieved successfully", material_requests.request_stats(course))

@router.get("/me")
async def my_requests(
    page: Page = Depends(page_params),
    status: Optional[RequestStatus] = None,
    current_user: User = Depends(get_current_user),
):
    items, total = material_requests.list_user_requests(page, current_user, status)
    return _listing(items, total, page)

@router.get("/course/{course_id}")
async def course_requests(course_id: str, page: Page = Depends(page_params), status: Optional[RequestStatus] = None):
    items, total = material_requests.list_course_requests(page, course_id, status)
    return _listing(items, total, page)

@router.get("/{request_id}")
async def get_request(request_id: str):
    request = material_requests.get_request(request_id)
    return success_response("Request retrieved successfully", serialize_request(request))

@router.put("/{request_id}")
async def update_request(request_id: str, payload: MaterialRequestUpdate, current_user: User = Depends(get_current_user)):
    request = material_requests.update_request(request_id, current_user, **payload.model_dump(exclude_unset=True))
    return success_response("Request updated successfully", serialize_request(request))

@router.delete("/{request_id}")
async def delete_request(request_id: str, current_user: User = Depends(get_current_user)):
    material_requests.delete_request(request_id, current_user)
    return success_response("Request deleted successfully")

@router.post("/{request_id}/vote")
async def vote_on_request(request_id: str, payload: RequestVote, current_user: User = Depends(get_current_user)):
    request = material_requests.vote_on_request(request_id, current_user, payload.vote_type)
    return success_response(
        "Vote recorded successfully",
        {"upvotes": request.upvotes, "downvotes": request.downvotes, "priority": request.priority},
    )

@router.patch("/{request_id}/in-progress")
async def mark_in_progress(request_id: str, current_user: User = Depends(require_rep)):
    request = material_requests.mark_in_progress(request_id, current_user)
    return success_response("Request marked as in progress", serialize_request(request))

@router.patch("/{request_id}/fulfill")
async def fulfill_request(request_id: str, payload: FulfillRequest, current_user: User = Depends(require_rep)):
    request = material_requests.fulfill_request(request_id, current_user, **payload.model_dump())
    return success_response("Request fulfilled successfully", serialize_request(request))

@router.patch("/{request_id}/reject")
async def reject_request(request_id: str, payload: RejectRequest, current_user: User = Depends(require_rep)):
    request = material_requests.reject_request(request_id, current_user, payload.reason)
    return success_response("Request rejected", serialize_request(request))
