from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Union

from readalong.models.participant_model import ParticipantStatus


class InboundEvent(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


# ---------------- Presence / chat ----------------

class JoinRoom(InboundEvent):
    display_name: str = Field(..., min_length=1)
    room_id: str = Field(..., min_length=1)
    role_hint: str = ""


class LeaveRoom(InboundEvent):
    room_id: str = Field(..., min_length=1)


class SendMessage(InboundEvent):
    room_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1, validation_alias=AliasChoices("body", "message"))


class StatusUpdate(InboundEvent):
    room_id: str = Field(..., min_length=1)
    status: ParticipantStatus


class Typing(InboundEvent):
    room_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)


class ActivityReport(InboundEvent):
    type: str = Field(..., min_length=1)
    broadcast: bool = False


class UserActivity(InboundEvent):
    room_id: str = Field(..., min_length=1)
    activity: ActivityReport


# ---------------- Live testing ----------------

class StartTestSession(InboundEvent):
    session_id: str = Field(..., min_length=1)
    teacher_id: str = Field(..., min_length=1)
    room_id: str = Field(..., min_length=1)
    test_type: str = Field(..., min_length=1)
    words_to_test: List[str] = Field(..., min_length=1)
    fry_level: Optional[Union[int, str]] = None


class SendTestWord(InboundEvent):
    session_id: str = Field(..., min_length=1)
    word: str = Field(..., min_length=1)
    test_type: str = Field(..., min_length=1)
    room_id: str = Field(..., min_length=1)
    difficulty: Optional[str] = None
    sequence: Optional[int] = None


class SubmitTestResponse(InboundEvent):
    session_id: str = Field(..., min_length=1)
    word: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    test_type: str = Field(..., min_length=1)
    student_name: Optional[str] = None
    response: Optional[str] = None
    response_time: Optional[float] = None
    recognized: Optional[bool] = None
    confidence: Optional[float] = None


class SaveAssessmentNote(InboundEvent):
    session_id: str = Field(..., min_length=1)
    word: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    teacher_notes: Optional[str] = None
    score: Optional[float] = None
    recognized: Optional[bool] = None


class EndTestSession(InboundEvent):
    session_id: str = Field(..., min_length=1)
    room_id: str = Field(..., min_length=1)
    completed_count: int = 0
    total_words: int = 0


class RequestPronunciation(InboundEvent):
    word: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)
    session_id: Optional[str] = None


class UpdateTestSettings(InboundEvent):
    session_id: str = Field(..., min_length=1)
    room_id: str = Field(..., min_length=1)
    settings: Dict[str, Any]
