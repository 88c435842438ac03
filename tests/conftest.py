from datetime import datetime, timedelta, timezone

import pytest

from readalong.realtime.assessment import AssessmentEvents
from readalong.realtime.registry import RoomRegistry
from readalong.realtime.relay import EventRelay


class FakeClock:
    def __init__(self, start=None):
        self.current = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class RecordingDispatcher:
    def __init__(self):
        self.sent = []

    async def send(self, connection_id, event, payload):
        self.sent.append((connection_id, event, payload))

    def received(self, connection_id, event=None):
        return [
            payload
            for to, name, payload in self.sent
            if to == connection_id and (event is None or name == event)
        ]

    def events_for(self, connection_id):
        return [name for to, name, _ in self.sent if to == connection_id]

    def recipients(self, event):
        return [to for to, name, _ in self.sent if name == event]

    def clear(self):
        self.sent.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return RoomRegistry(clock=clock)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def relay(registry, dispatcher):
    relay = EventRelay(registry, dispatcher)
    AssessmentEvents(relay).install()
    return relay


@pytest.fixture
def join(relay):
    async def _join(sid, display_name, room_id, role_hint="student", identity=None):
        relay.connect(sid, identity)
        await relay.handle(
            sid,
            "join_room",
            {"displayName": display_name, "roomId": room_id, "roleHint": role_hint},
        )

    return _join
