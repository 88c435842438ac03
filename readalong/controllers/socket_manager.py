# socket_manager.py
import logging
import socketio

from readalong import config
from readalong.controllers.auth import decode_identity, extract_socket_token
from readalong.realtime.errors import Unauthenticated
from readalong.realtime.relay import EventRelay

logger = logging.getLogger(__name__)


def register_handlers(sio: socketio.AsyncServer, relay: EventRelay) -> None:
    """Bind connect/disconnect and every relay event onto ``sio``."""

    @sio.event
    async def connect(sid, environ, auth=None):
        token = extract_socket_token(environ, auth)
        identity = None
        if token:
            try:
                identity = decode_identity(token)
            except Unauthenticated as exc:
                logger.info("Refused socket %s: %s", sid, exc.reason)
                raise ConnectionRefusedError(exc.reason) from exc
        elif config.REQUIRE_SOCKET_AUTH:
            raise ConnectionRefusedError("unauthorized")

        if identity is not None:
            await sio.save_session(sid, {"user_id": identity.id, "role": identity.role})
        relay.connect(sid, identity)
        logger.info("Client connected: %s (user %s)", sid, identity.id if identity else "anonymous")

    @sio.event
    async def disconnect(sid, *args):
        logger.info("Client disconnected: %s", sid)
        await relay.disconnect(sid)

    for name in relay.events:
        sio.on(name, handler=_relay_handler(relay, name))


def _relay_handler(relay: EventRelay, name: str):
    async def handler(sid, data=None):
        await relay.handle(sid, name, data)

    handler.__name__ = name
    return handler
