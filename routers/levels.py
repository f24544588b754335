from typing import Optional

from fastapi import APIRouter, Depends, status

from auth import require_admin
from models import User
from responses import serialize, success_response
from schemas import LevelCreate, LevelUpdate, StatusUpdate
from services import levels

router = APIRouter()

@router.get("/")
async def list_levels(is_active: Optional[bool] = None):
    items = levels.list_levels(is_active)
    return success_response("Levels retrieved successfully", [serialize(level) for level in items])

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_level(payload: LevelCreate, current_user: User = Depends(require_admin)):
    level = levels.create_level(current_user, **payload.model_dump())
    return success_response("Level created successfully", serialize(level))

@router.get("/code/{code}")
async def get_level_by_code(code: str):
    return success_response("Level retrieved successfully", serialize(levels.get_level_by_code(code)))

@router.get("/{level_id}")
async def get_level(level_id: str):
    return success_response("Level retrieved successfully", serialize(levels.get_level(level_id)))

@router.put("/{level_id}")
async def update_level(level_id: str, payload: LevelUpdate, current_user: User = Depends(require_admin)):
    level = levels.update_level(level_id, **payload.model_dump(exclude_unset=True))
    return success_response("Level updated successfully", serialize(level))

@router.delete("/{level_id}")
async def delete_level(level_id: str, current_user: User = Depends(require_admin)):
    levels.delete_level(level_id)
    return success_response("Level deleted successfully")

@router.patch("/{level_id}/status")
async def set_level_status(level_id: str, payload: StatusUpdate, current_user: User = Depends(require_admin)):
    level = levels.set_status(level_id, payload.is_active)
    return success_response("Level status updated successfully", serialize(level))
