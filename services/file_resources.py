import logging

from mongoengine.errors import NotUniqueError
from mongoengine.queryset.visitor import Q

import storage
from constants import DOWNLOAD_URL_TTL
from database import get_or_404, parse_object_id, ref_id
from errors import Conflict, Forbidden
from models import Course, User
from responses import course_summary, serialize, user_summary
from services import courses, uploads

logger = logging.getLogger(__name__)


class FileResourceService:
    """Uploaded-file records attached to a course.

    The course keeps a denormalized count of these records, adjusted on
    create and delete.
    """

    editable_fields = ("title", "description")

    def __init__(self, model, counter: str, label: str, ordering, filters=()):
        self.model = model
        self.counter = counter
        self.label = label
        self.ordering = ordering
        self.filters = filters

    @property
    def not_found(self) -> str:
        return f"{self.label} not found"

    def serialize(self, resource) -> dict:
        return serialize(resource, expand={"course": course_summary, "uploaded_by": user_summary})

    def create(self, user: User, course_id, file_name, file_type, file_size, file_key, **fields):
        course = get_or_404(Course, course_id, "Course not found")
        uploads.validate_file_metadata(file_name, file_type, file_size, file_key)

        file_url = fields.pop("file_url", None) or storage.public_url(file_key)
        resource = self.model(
            course=course,
            uploaded_by=user,
            file_name=file_name,
            mime_type=file_type,
            file_size=file_size,
            file_key=file_key,
            file_url=file_url,
            **fields
        )
        try:
            resource.save()
        except NotUniqueError:
            raise Conflict("A file with this key has already been recorded")

        courses.adjust_counter(course.id, self.counter, 1)
        logger.info("%s %s created for course %s", self.label, resource.id, course.code)
        return resource

    def _query(self, course_id=None, search=None, **filters) -> Q:
        query = Q(is_active=True)
        if course_id:
            query &= Q(course=parse_object_id(course_id, "Invalid course id"))
        for name in self.filters:
            if filters.get(name) is not None:
                query &= Q(**{name: filters[name]})
        if search:
            query &= Q(title__icontains=search) | Q(description__icontains=search)
        return query

    def list(self, page, course_id=None, search=None, **filters):
        queryset = self.model.objects(self._query(course_id, search, **filters)).order_by(*self.ordering)
        return page.slice(queryset), queryset.count()

    def list_for_course(self, page, course_id, **filters):
        get_or_404(Course, course_id, "Course not found")
        return self.list(page, course_id=course_id, **filters)

    def get(self, resource_id):
        return get_or_404(self.model, resource_id, self.not_found)

    def update(self, resource_id, **changes):
        resource = self.get(resource_id)

        course_id = changes.pop("course", None)
        old_course_id = ref_id(resource, "course")
        if course_id and parse_object_id(course_id) != old_course_id:
            resource.course = get_or_404(Course, course_id, "Course not found")
        else:
            old_course_id = None

        for field in self.editable_fields:
            if changes.get(field) is not None:
                setattr(resource, field, changes[field])
        resource.save()

        if old_course_id:
            courses.adjust_counter(old_course_id, self.counter, -1)
            courses.adjust_counter(resource.course.id, self.counter, 1)
        return resource

    def delete(self, resource_id):
        resource = self.get(resource_id)
        resource.delete()
        courses.adjust_counter(ref_id(resource, "course"), self.counter, -1)
        logger.info("%s %s deleted", self.label, resource.id)

    def download_url(self, resource_id) -> dict:
        resource = self.get(resource_id)
        if not resource.is_active:
            raise Forbidden(f"This {self.label.lower()} is not available")

        url = uploads.create_download_url(resource.file_key)
        self.model.objects(id=resource.id).update_one(inc__download_count=1)
        return {
            "download_url": url,
            "file_name": resource.file_name,
            "expires_in": DOWNLOAD_URL_TTL,
        }
