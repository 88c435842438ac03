# socket_instance.py
from datetime import timedelta
import socketio

from readalong import config
from readalong.realtime.assessment import AssessmentEvents
from readalong.realtime.dispatcher import SocketIODispatcher
from readalong.realtime.janitor import PresenceJanitor
from readalong.realtime.registry import RoomRegistry
from readalong.realtime.relay import EventRelay

# Events of one connection are handled in order, one at a time
sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=config.CORS_ORIGINS,
    async_handlers=False,
    logger=False,
    engineio_logger=False,
)

# One roster per process, shared by the relay and the janitor
registry = RoomRegistry()
relay = EventRelay(registry, SocketIODispatcher(sio))
AssessmentEvents(relay).install()
janitor = PresenceJanitor(
    relay,
    interval=timedelta(seconds=config.JANITOR_INTERVAL_SECONDS),
    timeout=timedelta(seconds=config.PRESENCE_TIMEOUT_SECONDS),
)
