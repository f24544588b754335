"""One vote per user per note or comment, with counters kept in step.

Counters move by atomic ``$inc`` in the same direction as the vote row
change, so concurrent voters never overwrite each other's counts.
``reconcile_vote_counts`` recounts from the vote rows for repair.
"""
import logging

from mongoengine.errors import NotUniqueError

from database import parse_object_id, ref_id
from errors import Conflict, NotFound
from models import Comment, CommunityNote, User, Vote
from services.community_notes import adjust_author_counters, apply_note_delta

logger = logging.getLogger(__name__)

RECEIVED_FIELDS = {"upvote": "note_upvotes_received", "downvote": "note_downvotes_received"}
COUNTER_FIELDS = {"upvote": "upvotes", "downvote": "downvotes"}


def _load_entity(entity_type: str, entity_id):
    model = CommunityNote if entity_type == "note" else Comment
    label = "Note" if entity_type == "note" else "Comment"
    entity = model.objects(id=entity_id, is_active=True).first()
    if entity is None:
        raise NotFound(f"{label} not found")
    return entity


def _apply(entity_type: str, entity, deltas: dict):
    """Shift entity counters (and note score and author counters) by ``deltas``.

    ``deltas`` maps vote type to +1/-1.
    """
    counter_deltas = {COUNTER_FIELDS[vote_type]: delta for vote_type, delta in deltas.items()}
    if entity_type == "note":
        if not apply_note_delta(entity.id, **counter_deltas):
            logger.warning("Vote counters drifted on note %s, recounting", entity.id)
            reconcile_vote_counts("note", entity.id)
            return
        adjust_author_counters(
            ref_id(entity, "author"),
            **{RECEIVED_FIELDS[vote_type]: delta for vote_type, delta in deltas.items()}
        )
    else:
        filters = {"id": entity.id}
        updates = {}
        for field, delta in counter_deltas.items():
            updates[f"inc__{field}"] = delta
            if delta < 0:
                filters[f"{field}__gte"] = -delta
        if not Comment.objects(**filters).update_one(**updates):
            logger.warning("Vote counters drifted on comment %s, recounting", entity.id)
            reconcile_vote_counts("comment", entity.id)


def cast_vote(user: User, entity_type: str, entity_id, vote_type: str) -> dict:
    entity_id = parse_object_id(entity_id, "Invalid entity id")
    entity = _load_entity(entity_type, entity_id)

    existing = Vote.objects(user=user.id, entity_type=entity_type, entity_id=entity_id).first()

    if existing is None:
        vote = Vote(user=user, entity_type=entity_type, entity_id=entity_id, vote_type=vote_type)
        try:
            vote.save()
        except NotUniqueError:
            raise Conflict("Vote already recorded, please retry")
        _apply(entity_type, entity, {vote_type: 1})
        return {"action": "created", "vote": vote}

    if existing.vote_type == vote_type:
        removed = Vote.objects(id=existing.id, vote_type=vote_type).delete()
        if removed:
            _apply(entity_type, entity, {vote_type: -1})
        return {"action": "removed", "vote": None}

    previous = existing.vote_type
    switched = Vote.objects(id=existing.id, vote_type=previous).update_one(set__vote_type=vote_type)
    if not switched:
        raise Conflict("Vote changed concurrently, please retry")
    _apply(entity_type, entity, {previous: -1, vote_type: 1})
    existing.vote_type = vote_type
    return {"action": "updated", "vote": existing}


def remove_vote(user: User, entity_type: str, entity_id):
    entity_id = parse_object_id(entity_id, "Invalid entity id")
    vote = Vote.objects(user=user.id, entity_type=entity_type, entity_id=entity_id).first()
    if vote is None:
        raise NotFound("Vote not found")

    if Vote.objects(id=vote.id).delete():
        model = CommunityNote if entity_type == "note" else Comment
        entity = model.objects(id=entity_id).first()
        if entity is not None:
            _apply(entity_type, entity, {vote.vote_type: -1})


def get_vote_counts(entity_type: str, entity_id) -> dict:
    entity_id = parse_object_id(entity_id, "Invalid entity id")
    upvotes = Vote.objects(entity_type=entity_type, entity_id=entity_id, vote_type="upvote").count()
    downvotes = Vote.objects(entity_type=entity_type, entity_id=entity_id, vote_type="downvote").count()
    return {"upvotes": upvotes, "downvotes": downvotes, "total": upvotes - downvotes}


def get_user_vote(user: User, entity_type: str, entity_id):
    entity_id = parse_object_id(entity_id, "Invalid entity id")
    return Vote.objects(user=user.id, entity_type=entity_type, entity_id=entity_id).first()


def reconcile_vote_counts(entity_type: str, entity_id) -> dict:
    """Overwrite stored counters with a recount of the vote rows."""
    entity_id = parse_object_id(entity_id, "Invalid entity id")
    model = CommunityNote if entity_type == "note" else Comment
    entity = model.objects(id=entity_id).first()
    if entity is None:
        raise NotFound(f"{'Note' if entity_type == 'note' else 'Comment'} not found")

    counts = get_vote_counts(entity_type, entity_id)
    if entity_type == "note":
        entity.upvotes = counts["upvotes"]
        entity.downvotes = counts["downvotes"]
        CommunityNote.objects(id=entity_id).update_one(
            set__upvotes=counts["upvotes"],
            set__downvotes=counts["downvotes"],
            set__score=entity.compute_score(),
        )
        reconcile_author_counters(ref_id(entity, "author"))
    else:
        Comment.objects(id=entity_id).update_one(
            set__upvotes=counts["upvotes"], set__downvotes=counts["downvotes"]
        )
    logger.info("Reconciled %s %s votes: %s", entity_type, entity_id, counts)
    return counts


def reconcile_author_counters(author_id):
    note_ids = [note.id for note in CommunityNote.objects(author=author_id).only("id")]
    if not note_ids:
        return
    upvotes = Vote.objects(entity_type="note", entity_id__in=note_ids, vote_type="upvote").count()
    downvotes = Vote.objects(entity_type="note", entity_id__in=note_ids, vote_type="downvote").count()
    User.objects(id=author_id).update_one(
        set__note_upvotes_received=upvotes, set__note_downvotes_received=downvotes
    )
