import logging

from mongoengine.errors import NotUniqueError
from mongoengine.queryset.visitor import Q

from constants import STAFF_ROLES
from database import get_or_404, parse_object_id
from errors import BadRequest, Conflict, NotFound
from models import Course, Level, User
from responses import serialize, user_summary

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "department", "credit_units", "semester", "is_active")


def level_summary(level):
    if not isinstance(level, Level):
        return None
    return {"id": str(level.id), "name": level.name, "code": level.code}


def serialize_course(course) -> dict:
    return serialize(course, expand={"level": level_summary, "assigned_reps": user_summary})


def create_course(user: User, level_id, code: str, **fields) -> Course:
    level = get_or_404(Level, level_id, "Level not found")
    code = code.strip().upper()
    if Course.objects(code=code).first():
        raise Conflict("Course with this code already exists")

    course = Course(code=code, level=level, created_by=user, **fields)
    try:
        course.save()
    except NotUniqueError:
        raise Conflict("Course with this code already exists")
    logger.info("Course %s created", course.code)
    return course


def list_courses(page, level_id=None, department=None, semester=None, is_active=None, search=None):
    query = Q()
    if level_id:
        query &= Q(level=parse_object_id(level_id, "Invalid level id"))
    if department:
        query &= Q(department__icontains=department)
    if semester:
        query &= Q(semester=semester)
    if is_active is not None:
        query &= Q(is_active=is_active)
    if search:
        query &= Q(title__icontains=search) | Q(code__icontains=search) | Q(description__icontains=search)
    queryset = Course.objects(query).order_by("code")
    return page.slice(queryset), queryset.count()


def get_course(course_id) -> Course:
    return get_or_404(Course, course_id, "Course not found")


def get_course_by_code(code: str) -> Course:
    course = Course.objects(code=code.strip().upper()).first()
    if course is None:
        raise NotFound("Course not found")
    return course


def courses_for_level(level_id, is_active=None):
    level = get_or_404(Level, level_id, "Level not found")
    queryset = Course.objects(level=level.id).order_by("code")
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active)
    return list(queryset)


def update_course(course_id, **changes) -> Course:
    course = get_course(course_id)

    code = changes.get("code")
    if code:
        code = code.strip().upper()
        if code != course.code and Course.objects(code=code).first():
            raise Conflict("Course with this code already exists")
        course.code = code

    level_id = changes.get("level")
    if level_id:
        course.level = get_or_404(Level, level_id, "Level not found")

    for field in UPDATABLE_FIELDS:
        if changes.get(field) is not None:
            setattr(course, field, changes[field])

    try:
        course.save()
    except NotUniqueError:
        raise Conflict("Course with this code already exists")
    return course


def delete_course(course_id):
    course = get_course(course_id)
    if course.resource_total() > 0:
        raise BadRequest(
            "Cannot delete course with associated resources. "
            "Delete resources first or deactivate the course."
        )
    course.delete()
    logger.info("Course %s deleted", course.code)


def set_status(course_id, is_active: bool) -> Course:
    course = get_course(course_id)
    Course.objects(id=course.id).update_one(set__is_active=is_active)
    course.is_active = is_active
    return course


def assign_reps(course_id, rep_ids) -> Course:
    course = get_course(course_id)
    ids = [parse_object_id(rep_id, "One or more invalid rep IDs") for rep_id in rep_ids]
    reps = list(User.objects(id__in=ids, role__in=STAFF_ROLES))
    if len(reps) != len(set(ids)):
        raise BadRequest("One or more invalid rep IDs")

    Course.objects(id=course.id).update_one(add_to_set__assigned_reps=reps)
    course.reload()
    return course


def adjust_counter(course_id, counter: str, delta: int):
    filters = {"id": course_id}
    if delta < 0:
        filters[f"{counter}__gte"] = -delta
    Course.objects(**filters).update_one(**{f"inc__{counter}": delta})
