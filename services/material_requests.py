"""Material requests and their status lifecycle.

pending -> in-progress -> fulfilled, and pending | in-progress -> rejected.
fulfilled and rejected are terminal. Every transition is a conditional
update on the current status, so two moderators cannot both win.
"""
import logging

from mongoengine.queryset.visitor import Q

from constants import REQUEST_STATUSES, TERMINAL_REQUEST_STATUSES
from database import get_or_404, parse_object_id, ref_id
from errors import BadRequest, Forbidden
from models import Course, MaterialRequest, RequestDetails, User, utcnow
from responses import course_summary, serialize, user_summary

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("pending", "in-progress")
SORTS = {
    "priority": ("-priority", "-created_at"),
    "recent": ("-created_at",),
    "oldest": ("created_at",),
}


def serialize_request(request) -> dict:
    return serialize(
        request,
        exclude=("voters",),
        expand={
            "course": course_summary,
            "requested_by": user_summary,
            "fulfilled_by": user_summary,
            "rejected_by": user_summary,
        },
    )


def _details(specific_details):
    if not specific_details:
        return None
    return RequestDetails(**specific_details)


def create_request(user: User, course_id, request_type: str, title: str, description=None, specific_details=None):
    course = get_or_404(Course, course_id, "Course not found")
    request = MaterialRequest(
        course=course,
        requested_by=user,
        request_type=request_type,
        title=title,
        description=description,
        specific_details=_details(specific_details),
    )
    request.save()
    return request


def list_requests(page, course_id=None, request_type=None, status=None, sort_by="priority", requested_by=None):
    query = Q(is_active=True)
    if course_id:
        query &= Q(course=parse_object_id(course_id, "Invalid course id"))
    if request_type:
        query &= Q(request_type=request_type)
    if status:
        query &= Q(status=status)
    if requested_by:
        query &= Q(requested_by=requested_by)
    queryset = MaterialRequest.objects(query).order_by(*SORTS.get(sort_by, SORTS["priority"]))
    return page.slice(queryset), queryset.count()


def list_course_requests(page, course_id, status=None):
    get_or_404(Course, course_id, "Course not found")
    return list_requests(page, course_id=course_id, status=status)


def list_user_requests(page, user: User, status=None):
    return list_requests(page, status=status, sort_by="recent", requested_by=user.id)


def get_request(request_id) -> MaterialRequest:
    return get_or_404(MaterialRequest, request_id, "Request not found", is_active=True)


def update_request(request_id, user: User, title=None, description=None, specific_details=None):
    request = get_request(request_id)
    if ref_id(request, "requested_by") != user.id:
        raise Forbidden("Not authorized to update this request")

    updates = {}
    if title is not None:
        updates["set__title"] = title
    if description is not None:
        updates["set__description"] = description
    if specific_details is not None:
        updates["set__specific_details"] = _details(specific_details)
    updates["set__updated_at"] = utcnow()

    if not MaterialRequest.objects(id=request.id, status="pending").update_one(**updates):
        raise BadRequest("Cannot update request that is no longer pending")
    request.reload()
    return request


def delete_request(request_id, user: User):
    request = get_request(request_id)
    if ref_id(request, "requested_by") != user.id:
        raise Forbidden("Not authorized to delete this request")
    MaterialRequest.objects(id=request.id).update_one(set__is_active=False, set__updated_at=utcnow())


def vote_on_request(request_id, user: User, vote_type: str) -> MaterialRequest:
    request = get_request(request_id)
    field = {"upvote": "upvotes", "downvote": "downvotes"}.get(vote_type)
    if field is None:
        raise BadRequest("Invalid vote type")

    # priority moves in the same update so it always equals upvotes - downvotes
    voted = MaterialRequest.objects(id=request.id, voters__ne=user.id).update_one(
        push__voters=user.id,
        **{f"inc__{field}": 1, "inc__priority": 1 if vote_type == "upvote" else -1}
    )
    if not voted:
        raise BadRequest("You have already voted on this request")
    request.reload()
    return request


def _transition(request_id, allowed, message: str, **updates) -> MaterialRequest:
    request = get_request(request_id)
    moved = MaterialRequest.objects(id=request.id, status__in=allowed).update_one(
        set__updated_at=utcnow(), **updates
    )
    if not moved:
        request.reload()
        if request.status in TERMINAL_REQUEST_STATUSES:
            raise BadRequest("Request is already fulfilled or rejected")
        raise BadRequest(message)
    request.reload()
    logger.info("Request %s moved to %s", request.id, request.status)
    return request


def mark_in_progress(request_id, user: User) -> MaterialRequest:
    return _transition(request_id, ("pending",), "Request is not in pending status", set__status="in-progress")


def fulfill_request(request_id, user: User, note=None, resource_id=None, resource_type=None) -> MaterialRequest:
    updates = {
        "set__status": "fulfilled",
        "set__fulfilled_by": user,
        "set__fulfilled_at": utcnow(),
    }
    if note is not None:
        updates["set__fulfillment_note"] = note
    if resource_id:
        updates["set__resource_id"] = parse_object_id(resource_id, "Invalid resource id")
    if resource_type:
        updates["set__resource_type"] = resource_type
    return _transition(request_id, OPEN_STATUSES, "Request is already fulfilled or rejected", **updates)


def reject_request(request_id, user: User, reason: str) -> MaterialRequest:
    return _transition(
        request_id,
        OPEN_STATUSES,
        "Request is already fulfilled or rejected",
        set__status="rejected",
        set__rejected_by=user,
        set__rejected_at=utcnow(),
        set__rejection_reason=reason,
    )


def request_stats(course_id=None) -> dict:
    queryset = MaterialRequest.objects(is_active=True)
    if course_id:
        queryset = queryset.filter(course=parse_object_id(course_id, "Invalid course id"))
    stats = {status: queryset.filter(status=status).count() for status in REQUEST_STATUSES}
    stats["total"] = sum(stats.values())
    return stats
