import logging

from mongoengine.errors import NotUniqueError

from database import get_or_404
from errors import BadRequest, Conflict, NotFound
from models import Course, Level, User

logger = logging.getLogger(__name__)


def create_level(user: User, name: str, code: str, order: int, description: str = None) -> Level:
    code = code.strip().upper()
    if Level.objects(code=code).first():
        raise Conflict("Level with this code already exists")

    level = Level(name=name, code=code, order=order, description=description, created_by=user)
    try:
        level.save()
    except NotUniqueError:
        raise Conflict("Level with this name or code already exists")
    return level


def list_levels(is_active=None):
    queryset = Level.objects.order_by("order")
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active)
    return list(queryset)


def get_level(level_id) -> Level:
    return get_or_404(Level, level_id, "Level not found")


def get_level_by_code(code: str) -> Level:
    level = Level.objects(code=code.strip().upper()).first()
    if level is None:
        raise NotFound("Level not found")
    return level


def update_level(level_id, **changes) -> Level:
    level = get_level(level_id)
    code = changes.get("code")
    if code:
        code = code.strip().upper()
        if code != level.code and Level.objects(code=code).first():
            raise Conflict("Level with this code already exists")
        level.code = code
    for field in ("name", "description", "order", "is_active"):
        if changes.get(field) is not None:
            setattr(level, field, changes[field])
    try:
        level.save()
    except NotUniqueError:
        raise Conflict("Level with this name or code already exists")
    return level


def delete_level(level_id):
    level = get_level(level_id)
    course_count = Course.objects(level=level.id).count()
    if course_count > 0:
        raise BadRequest(
            f"Cannot delete level with {course_count} associated courses. Delete courses first."
        )
    level.delete()
    logger.info("Level %s deleted", level.code)


def set_status(level_id, is_active: bool) -> Level:
    level = get_level(level_id)
    Level.objects(id=level.id).update_one(set__is_active=is_active)
    level.is_active = is_active
    return level
