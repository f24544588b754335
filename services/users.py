import logging

from mongoengine.queryset.visitor import Q

from constants import STAFF_ROLES
from database import get_or_404, parse_object_id, ref_id
from errors import BadRequest, NotFound
from models import Course, CommunityNote, User
from services.community_notes import adjust_author_counters, apply_note_delta

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "bio", "profile_picture")


def get_user(user_id) -> User:
    return get_or_404(User, user_id, "User not found")


def update_profile(user: User, **changes) -> User:
    for field in PROFILE_FIELDS:
        if changes.get(field) is not None:
            setattr(user, field, changes[field])
    user.save()
    return user


def list_users(page, role=None, is_verified=None, is_active=None, search=None):
    query = Q()
    if role:
        query &= Q(role=role)
    if is_verified is not None:
        query &= Q(is_verified=is_verified)
    if is_active is not None:
        query &= Q(is_active=is_active)
    if search:
        query &= Q(name__icontains=search) | Q(email__icontains=search)
    queryset = User.objects(query).order_by("-created_at")
    return page.slice(queryset), queryset.count()


def set_role(user_id, role: str) -> User:
    user = get_user(user_id)
    User.objects(id=user.id).update_one(set__role=role)
    user.role = role
    logger.info("User %s role changed to %s", user.id, role)
    return user


def set_active(user_id, is_active: bool) -> User:
    user = get_user(user_id)
    updates = {"set__is_active": is_active}
    if not is_active:
        updates["unset__refresh_token"] = True
    User.objects(id=user.id).update_one(**updates)
    user.is_active = is_active
    return user


def assign_courses(user_id, course_ids) -> User:
    user = get_user(user_id)
    if user.role not in STAFF_ROLES:
        raise BadRequest("User must be a rep or admin")

    ids = [parse_object_id(course_id, "Invalid course id") for course_id in course_ids]
    courses = list(Course.objects(id__in=ids))
    if len(courses) != len(set(ids)):
        raise NotFound("One or more courses not found")

    User.objects(id=user.id).update_one(add_to_set__assigned_courses=courses)
    user.reload()
    return user


def save_note(user: User, note_id):
    note = get_or_404(CommunityNote, note_id, "Note not found", is_active=True)
    added = User.objects(id=user.id, saved_notes__ne=note.id).update_one(push__saved_notes=note.id)
    if not added:
        raise BadRequest("Note already saved")

    apply_note_delta(note.id, saves=1)
    adjust_author_counters(ref_id(note, "author"), note_saves_received=1)


def unsave_note(user: User, note_id):
    note_id = parse_object_id(note_id, "Invalid note id")
    removed = User.objects(id=user.id, saved_notes=note_id).update_one(pull__saved_notes=note_id)
    if not removed:
        raise BadRequest("Note not in saved list")

    note = CommunityNote.objects(id=note_id).first()
    if note is not None and apply_note_delta(note.id, saves=-1):
        author_id = ref_id(note, "author")
        User.objects(id=author_id, note_saves_received__gt=0).update_one(dec__note_saves_received=1)


def saved_notes(page, user: User):
    user.reload("saved_notes")
    queryset = CommunityNote.objects(id__in=user.saved_notes, is_active=True).order_by("-created_at")
    return page.slice(queryset), queryset.count()


def update_reputation(user_id) -> User:
    user = get_user(user_id)
    score = user.compute_reputation()
    User.objects(id=user.id).update_one(set__reputation_score=score)
    user.reputation_score = score
    return user


def update_all_reputations() -> int:
    updated = 0
    for user in User.objects.only(
        "note_upvotes_received",
        "note_downvotes_received",
        "note_saves_received",
        "comments_count",
        "quiz_correct_answers",
    ):
        User.objects(id=user.id).update_one(set__reputation_score=user.compute_reputation())
        updated += 1
    logger.info("Recomputed reputation for %s users", updated)
    return updated


def user_stats(user_id) -> dict:
    user = get_user(user_id)
    return {
        "reputation_score": user.reputation_score,
        "computed_reputation": user.compute_reputation(),
        "notes_created": user.notes_created,
        "note_upvotes_received": user.note_upvotes_received,
        "note_downvotes_received": user.note_downvotes_received,
        "note_saves_received": user.note_saves_received,
        "comments_count": user.comments_count,
        "quizzes_taken": user.quizzes_taken,
        "quiz_correct_answers": user.quiz_correct_answers,
        "saved_notes_count": len(user.saved_notes),
    }
