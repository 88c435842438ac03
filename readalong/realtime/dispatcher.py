from typing import Any, Dict, Protocol

import socketio


class Dispatcher(Protocol):
    async def send(self, connection_id: str, event: str, payload: Dict[str, Any]):
        ...


class SocketIODispatcher:
    def __init__(self, sio: socketio.AsyncServer):
        self.sio = sio

    async def send(self, connection_id: str, event: str, payload: Dict[str, Any]):
        await self.sio.emit(event, payload, to=connection_id)
