from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Literal, Optional
from datetime import datetime

ParticipantStatus = Literal["active", "typing", "idle"]


class Participant(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    connection_id: str
    display_name: str
    room_id: str = Field(..., min_length=1)
    role_hint: str = ""
    user_id: Optional[str] = None
    verified_role: Optional[str] = None
    last_activity_at: datetime
    status: ParticipantStatus = "active"
    current_activity: Optional[str] = None

    def to_roster_entry(self) -> dict:
        """Wire shape used in ``chatroom_users`` and the roster endpoint."""
        return self.model_dump(by_alias=True, mode="json")


class RoomRoster(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    room_id: str
    members: list
    count: int
