from fastapi import APIRouter, Depends, Query, Request
from datetime import timedelta
from typing import Optional

from readalong import config
from readalong.controllers.auth import get_current_user
from readalong.models.participant_model import RoomRoster
from readalong.models.user_model import Identity
from readalong.realtime.registry import RoomRegistry

router = APIRouter()


# ---------------- Dependency ----------------
async def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.registry


# ---------------- Room roster ----------------
@router.get("/rooms/{room_id}/participants", response_model=RoomRoster, response_model_by_alias=True)
async def get_room_participants(
    room_id: str,
    active: bool = False,
    active_within: Optional[int] = Query(default=None, ge=1),
    registry: RoomRegistry = Depends(get_registry),
    user: Identity = Depends(get_current_user),
):
    # ?active=true uses the configured window; active_within overrides it
    if active and not active_within:
        active_within = config.ACTIVE_WINDOW_SECONDS
    if active_within:
        members = await registry.active_members_of(room_id, timedelta(seconds=active_within))
    else:
        members = await registry.members_of(room_id)
    return RoomRoster(
        room_id=room_id,
        members=[m.to_roster_entry() for m in members],
        count=len(members),
    )
