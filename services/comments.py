import logging

from constants import STAFF_ROLES
from database import get_or_404, ref_id
from errors import Forbidden, NotFound
from models import Comment, CommunityNote, User, Vote
from responses import serialize, user_summary
from services.community_notes import apply_note_delta

logger = logging.getLogger(__name__)


def serialize_comment(comment) -> dict:
    return serialize(comment, expand={"user": user_summary})


def create_comment(user: User, note_id, content: str) -> Comment:
    note = get_or_404(CommunityNote, note_id, "Note not found")
    if not note.is_active:
        raise Forbidden("Cannot comment on inactive note")

    comment = Comment(note=note, user=user, content=content)
    comment.save()

    apply_note_delta(note.id, comment_count=1)
    User.objects(id=user.id).update_one(inc__comments_count=1)
    return comment


def list_comments(page, note_id):
    get_or_404(CommunityNote, note_id, "Note not found")
    queryset = Comment.objects(note=note_id, is_active=True).order_by("created_at")
    return page.slice(queryset), queryset.count()


def update_comment(comment_id, user: User, content: str) -> Comment:
    comment = get_or_404(Comment, comment_id, "Comment not found", is_active=True)
    if ref_id(comment, "user") != user.id:
        raise Forbidden("You can only edit your own comments")
    comment.content = content
    comment.save()
    return comment


def delete_comment(comment_id, user: User):
    comment = get_or_404(Comment, comment_id, "Comment not found")
    owner_id = ref_id(comment, "user")
    if owner_id != user.id and user.role not in STAFF_ROLES:
        raise Forbidden("Not authorized to delete this comment")

    if not Comment.objects(id=comment.id).delete():
        raise NotFound("Comment not found")
    Vote.objects(entity_type="comment", entity_id=comment.id).delete()

    if comment.is_active:
        apply_note_delta(ref_id(comment, "note"), comment_count=-1)
    User.objects(id=owner_id, comments_count__gt=0).update_one(dec__comments_count=1)
