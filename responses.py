import math
from dataclasses import dataclass
from datetime import datetime

from bson import ObjectId, DBRef
from fastapi import Query
from mongoengine import Document, EmbeddedDocument
from mongoengine.errors import DoesNotExist

from constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT


@dataclass
class Page:
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def slice(self, queryset):
        return queryset.skip(self.skip).limit(self.limit)


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
) -> Page:
    return Page(page=page, limit=limit)


def pagination_metadata(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def success_response(message: str, data=None, pagination=None) -> dict:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination
    return body


def to_json(value):
    if isinstance(value, (Document, EmbeddedDocument)):
        value = value.to_mongo().to_dict()
    if isinstance(value, dict):
        return {
            ("id" if key == "_id" else key): to_json(item)
            for key, item in value.items()
            if key != "_cls"
        }
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, DBRef):
        return str(value.id)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def user_summary(user) -> dict:
    if user is None or not isinstance(user, Document):
        return None
    return {
        "id": str(user.id),
        "name": user.name,
        "role": user.role,
        "reputation_score": user.reputation_score,
        "profile_picture": user.profile_picture,
    }


def course_summary(course) -> dict:
    if course is None or not isinstance(course, Document):
        return None
    return {"id": str(course.id), "title": course.title, "code": course.code}


def serialize(document, exclude=(), expand=None) -> dict:
    """Convert a document to JSON, optionally replacing references with summaries.

    ``expand`` maps a reference field name to a summary function applied to the
    dereferenced document. Dangling references serialize as None.
    """
    data = to_json(document)
    for name in exclude:
        data.pop(name, None)
    for name, summarize in (expand or {}).items():
        try:
            related = getattr(document, name)
        except DoesNotExist:
            related = None
        if isinstance(related, list):
            data[name] = [summarize(item) for item in related if isinstance(item, Document)]
        else:
            data[name] = summarize(related)
    return data


def serialize_user(user) -> dict:
    return serialize(user, exclude=user.PRIVATE_FIELDS)
