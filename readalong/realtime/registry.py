"""In-memory roster of connected participants, guarded by one asyncio.Lock."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from readalong.models.participant_model import Participant, ParticipantStatus
from readalong.realtime.errors import DuplicateConnection, ParticipantNotFound

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow():
    return datetime.now(timezone.utc)


class RoomRegistry:
    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or utcnow
        self._lock = asyncio.Lock()
        # Insertion-ordered, keyed by connection id
        self._participants: Dict[str, Participant] = {}

    def now(self):
        return self._clock()

    def __len__(self):
        return len(self._participants)

    async def register(
        self,
        connection_id: str,
        display_name: str,
        room_id: str,
        role_hint: str = "",
        *,
        user_id: Optional[str] = None,
        verified_role: Optional[str] = None,
    ) -> Participant:
        async with self._lock:
            if connection_id in self._participants:
                raise DuplicateConnection(connection_id)
            participant = Participant(
                connection_id=connection_id,
                display_name=display_name,
                room_id=room_id,
                role_hint=role_hint,
                user_id=user_id,
                verified_role=verified_role,
                last_activity_at=self._clock(),
            )
            self._participants[connection_id] = participant
            logger.debug("Registered %s as %r in room %s", connection_id, display_name, room_id)
            return participant.model_copy()

    async def get(self, connection_id: str) -> Participant:
        async with self._lock:
            participant = self._participants.get(connection_id)
            if participant is None:
                raise ParticipantNotFound(connection_id)
            return participant.model_copy()

    async def members_of(self, room_id: str) -> List[Participant]:
        async with self._lock:
            return [p.model_copy() for p in self._participants.values() if p.room_id == room_id]

    async def active_members_of(self, room_id: str, within: timedelta) -> List[Participant]:
        """Members of ``room_id`` seen within the ``within`` window."""
        async with self._lock:
            cutoff = self._clock() - within
            return [
                p.model_copy()
                for p in self._participants.values()
                if p.room_id == room_id and p.last_activity_at >= cutoff
            ]

    async def rooms(self) -> List[str]:
        async with self._lock:
            return list(dict.fromkeys(p.room_id for p in self._participants.values()))

    async def touch(
        self,
        connection_id: str,
        status: Optional[ParticipantStatus] = None,
        *,
        activity: Optional[str] = None,
    ) -> Participant:
        async with self._lock:
            participant = self._participants.get(connection_id)
            if participant is None:
                raise ParticipantNotFound(connection_id)
            participant.last_activity_at = self._clock()
            if status is not None:
                participant.status = status
            if activity is not None:
                participant.current_activity = activity
            return participant.model_copy()

    async def remove(self, connection_id: str) -> Participant:
        async with self._lock:
            participant = self._participants.pop(connection_id, None)
            if participant is None:
                raise ParticipantNotFound(connection_id)
            logger.debug("Removed %s from room %s", connection_id, participant.room_id)
            return participant

    async def stale_since(self, cutoff: datetime) -> List[Participant]:
        async with self._lock:
            return [p.model_copy() for p in self._participants.values() if p.last_activity_at < cutoff]

    async def evict(self, connection_id: str, cutoff: datetime) -> Participant:
        """Remove ``connection_id`` only if it is still stale at ``cutoff``.

        Raises ``ParticipantNotFound`` when the connection is gone or has been
        active again since the snapshot was taken.
        """
        async with self._lock:
            participant = self._participants.get(connection_id)
            if participant is None or participant.last_activity_at >= cutoff:
                raise ParticipantNotFound(connection_id)
            del self._participants[connection_id]
            return participant
