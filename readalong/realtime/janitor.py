"""Evicts participants whose connection dropped without a disconnect."""

import asyncio
import logging
from datetime import timedelta
from typing import List, Optional

from readalong.models.participant_model import Participant
from readalong.realtime.errors import ParticipantNotFound
from readalong.realtime.relay import EventRelay

logger = logging.getLogger(__name__)


class PresenceJanitor:
    def __init__(
        self,
        relay: EventRelay,
        interval: timedelta = timedelta(minutes=5),
        timeout: timedelta = timedelta(minutes=10),
    ):
        self.relay = relay
        self.registry = relay.registry
        self.interval = interval
        self.timeout = timeout
        self._task: Optional[asyncio.Task] = None

    async def scan(self) -> List[Participant]:
        """Run one sweep and return the participants it evicted."""
        cutoff = self.registry.now() - self.timeout
        evicted = []
        for candidate in await self.registry.stale_since(cutoff):
            try:
                participant = await self.registry.evict(candidate.connection_id, cutoff)
            except ParticipantNotFound:
                # Left or became active again since the snapshot
                continue
            except Exception:
                logger.exception("Could not evict %s", candidate.connection_id)
                continue

            evicted.append(participant)
            logger.info(
                "Evicted %s (%s) from room %s after inactivity",
                participant.display_name,
                participant.connection_id,
                participant.room_id,
            )
            try:
                await self.relay.announce_departure(participant, "timeout")
            except Exception:
                logger.exception("Could not announce timeout of %s", participant.connection_id)
        return evicted

    async def run(self):
        while True:
            await asyncio.sleep(self.interval.total_seconds())
            try:
                await self.scan()
            except Exception:
                logger.exception("Presence scan failed")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            logger.info(
                "Presence janitor running every %ss, timeout %ss",
                int(self.interval.total_seconds()),
                int(self.timeout.total_seconds()),
            )
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
