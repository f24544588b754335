import logging
from collections import Counter

from mongoengine.queryset.visitor import Q
from pymongo.errors import PyMongoError

import scoring
from constants import REPORT_THRESHOLD, STAFF_ROLES
from database import get_or_404, parse_object_id, ref_id
from errors import BadRequest, Forbidden, NotFound
from models import Comment, CommunityNote, Course, User, Vote, utcnow
from responses import course_summary, serialize, user_summary
from services import courses

logger = logging.getLogger(__name__)

NOTE_EXPAND = {"author": user_summary, "course": course_summary}
SORTS = {
    "recent": ("-is_pinned", "-created_at"),
    "popular": ("-is_pinned", "-score"),
    "score": ("-is_pinned", "-score", "-created_at"),
}


def serialize_note(note) -> dict:
    return serialize(note, exclude=("reported_by",), expand=NOTE_EXPAND)


def apply_note_delta(note_id, upvotes=0, downvotes=0, saves=0, comment_count=0) -> bool:
    """Atomically shift note counters and the score derived from them.

    Decrements are guarded so counters never go negative; returns False when
    the guard (or the id) did not match.
    """
    filters = {"id": note_id}
    updates = {}
    for field, delta in (("upvotes", upvotes), ("downvotes", downvotes), ("saves", saves), ("comment_count", comment_count)):
        if delta:
            updates[f"inc__{field}"] = delta
        if delta < 0:
            filters[f"{field}__gte"] = -delta

    score_delta = scoring.note_score(upvotes, downvotes, saves, comment_count)
    if score_delta:
        updates["inc__score"] = score_delta
    if not updates:
        return True
    return CommunityNote.objects(**filters).update_one(**updates) == 1


def adjust_author_counters(author_id, **deltas):
    """Best-effort shift of an author's received counters; failures are logged."""
    updates = {f"inc__{field}": delta for field, delta in deltas.items() if delta}
    if not author_id or not updates:
        return
    try:
        User.objects(id=author_id).update_one(**updates)
    except PyMongoError:
        logger.exception("Failed to update counters for author %s", author_id)


def create_note(user: User, course_id: str, title: str, content: str, tags=None) -> CommunityNote:
    course = get_or_404(Course, course_id, "Course not found")
    note = CommunityNote(course=course, author=user, title=title, content=content, tags=tags or [])
    note.save()

    courses.adjust_counter(course.id, "community_notes_count", 1)
    User.objects(id=user.id).update_one(inc__notes_created=1)
    logger.info("Community note %s created by %s", note.id, user.id)
    return note


def _filtered(course_id=None, author_id=None, tags=None, search=None):
    query = Q(is_active=True)
    if course_id:
        query &= Q(course=parse_object_id(course_id, "Invalid course id"))
    if author_id:
        query &= Q(author=parse_object_id(author_id, "Invalid user id"))
    if tags:
        query &= Q(tags__in=[tag.strip().lower() for tag in tags])
    if search:
        query &= Q(title__icontains=search) | Q(content__icontains=search) | Q(tags__in=[search.lower()])
    return CommunityNote.objects(query)


def list_notes(page, course_id=None, author_id=None, tags=None, search=None, sort_by="score"):
    queryset = _filtered(course_id, author_id, tags, search).order_by(*SORTS.get(sort_by, SORTS["score"]))
    total = queryset.count()
    return page.slice(queryset), total


def list_course_notes(page, course_id, tags=None, sort_by="score"):
    get_or_404(Course, course_id, "Course not found")
    return list_notes(page, course_id=course_id, tags=tags, sort_by=sort_by)


def list_user_notes(page, author_id, include_inactive=False):
    get_or_404(User, author_id, "User not found")
    queryset = CommunityNote.objects(author=author_id)
    if not include_inactive:
        queryset = queryset.filter(is_active=True)
    queryset = queryset.order_by("-created_at")
    return page.slice(queryset), queryset.count()


def get_note(note_id, increment_view=False) -> CommunityNote:
    note = get_or_404(CommunityNote, note_id, "Community note not found")
    if not note.is_active:
        raise Forbidden("This note is not available")
    if increment_view:
        CommunityNote.objects(id=note.id).update_one(inc__view_count=1)
        note.view_count += 1
    return note


def update_note(note_id, user: User, title=None, content=None, tags=None) -> CommunityNote:
    note = get_or_404(CommunityNote, note_id, "Community note not found")
    if ref_id(note, "author") != user.id:
        raise Forbidden("You can only edit your own notes")

    if title is not None:
        note.title = title
    if content is not None:
        note.content = content
    if tags is not None:
        note.tags = tags
    note.last_edited_at = utcnow()
    # save() only writes changed fields, so counters are left alone
    note.save()
    note.reload()
    return note


def delete_note(note_id, user: User):
    note = get_or_404(CommunityNote, note_id, "Community note not found")
    author_id = ref_id(note, "author")
    if author_id != user.id and user.role not in STAFF_ROLES:
        raise Forbidden("Not authorized to delete this note")

    comments = list(Comment.objects(note=note.id).only("id", "user"))
    comment_ids = [comment.id for comment in comments]
    per_commenter = Counter(ref_id(comment, "user") for comment in comments)
    Vote.objects(entity_type="comment", entity_id__in=comment_ids).delete()
    Comment.objects(note=note.id).delete()
    for commenter_id, count in per_commenter.items():
        User.objects(id=commenter_id, comments_count__gte=count).update_one(dec__comments_count=count)
    Vote.objects(entity_type="note", entity_id=note.id).delete()
    User.objects(saved_notes=note.id).update(pull__saved_notes=note.id)
    note.delete()

    courses.adjust_counter(ref_id(note, "course"), "community_notes_count", -1)
    User.objects(id=author_id, notes_created__gt=0).update_one(dec__notes_created=1)
    adjust_author_counters(
        author_id,
        note_upvotes_received=-note.upvotes,
        note_downvotes_received=-note.downvotes,
        note_saves_received=-note.saves,
    )
    logger.info("Community note %s deleted by %s", note.id, user.id)


def set_pinned(note_id, is_pinned: bool) -> CommunityNote:
    note = get_or_404(CommunityNote, note_id, "Community note not found")
    CommunityNote.objects(id=note.id).update_one(set__is_pinned=is_pinned)
    note.is_pinned = is_pinned
    return note


def report_note(note_id, user: User) -> CommunityNote:
    note = get_or_404(CommunityNote, note_id, "Community note not found", is_active=True)
    updated = CommunityNote.objects(id=note.id, reported_by__ne=user.id).update_one(
        push__reported_by=user.id, inc__report_count=1
    )
    if not updated:
        raise BadRequest("You have already reported this note")

    CommunityNote.objects(id=note.id, report_count__gte=REPORT_THRESHOLD, is_active=True).update_one(
        set__is_active=False
    )
    note.reload()
    if not note.is_active:
        logger.warning("Community note %s deactivated after %s reports", note.id, note.report_count)
    return note


def require_active_note(note_id) -> CommunityNote:
    note = get_or_404(CommunityNote, note_id, "Note not found")
    if not note.is_active:
        raise NotFound("Note not found")
    return note