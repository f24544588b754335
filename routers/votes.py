from fastapi import APIRouter, Depends

from auth import get_current_user, require_admin
from models import User
from responses import serialize, success_response
from schemas import EntityType, VoteCast, VoteTarget
from services import votes

router = APIRouter()

CAST_MESSAGES = {
    "created": "Vote recorded successfully",
    "updated": "Vote updated successfully",
    "removed": "Vote removed successfully",
}

@router.post("/")
async def cast_vote(payload: VoteCast, current_user: User = Depends(get_current_user)):
    result = votes.cast_vote(current_user, payload.entity_type, payload.entity_id, payload.vote_type)
    vote = result["vote"]
    return success_response(
        CAST_MESSAGES[result["action"]],
        {"action": result["action"], "vote": serialize(vote) if vote else None},
    )

@router.delete("/")
async def remove_vote(payload: VoteTarget, current_user: User = Depends(get_current_user)):
    votes.remove_vote(current_user, payload.entity_type, payload.entity_id)
    return success_response("Vote removed successfully")

@router.get("/user")
async def user_vote(entity_type: EntityType, entity_id: str, current_user: User = Depends(get_current_user)):
    vote = votes.get_user_vote(current_user, entity_type, entity_id)
    return success_response(
        "User vote retrieved successfully",
        {"vote_type": vote.vote_type if vote else None},
    )

@router.get("/counts")
async def vote_counts(entity_type: EntityType, entity_id: str):
    return success_response("Vote counts retrieved successfully", votes.get_vote_counts(entity_type, entity_id))

@router.post("/reconcile")
async def reconcile(payload: VoteTarget, current_user: User = Depends(require_admin)):
    counts = votes.reconcile_vote_counts(payload.entity_type, payload.entity_id)
    return success_response("Vote counts reconciled successfully", counts)
